"""Contrato del cliente remoto de Key Vault (control-plane).

Por qué Protocol:
- Los servicios de resolución solo necesitan dos capacidades: lectura puntual
  y enumeración paginada. Cualquier implementación (ARM REST, SDK, un fake en
  tests) que las exponga es intercambiable.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import VaultPage, VaultRecord


@runtime_checkable
class VaultsClient(Protocol):
    """Operaciones remotas que consume el Core.

    Reglas de diseño:
    - Todo es asíncrono porque cada llamada es I/O.
    - La ausencia en `get_vault` se señala con una excepción para la que
      `response_was_not_found(exc)` es verdadero; no con `None`.
    - Sin reintentos: si existen, viven en el transporte por debajo.
    """

    async def get_vault(self, resource_group: str, name: str) -> VaultRecord:
        """Lectura puntual de un vault por resource group + nombre."""

        ...

    async def list_vaults(self, top: int) -> VaultPage:
        """Primera página de todos los vaults visibles (como mucho `top` entradas)."""

        ...

    async def list_vaults_next(self, next_link: str) -> VaultPage:
        """Página siguiente a partir del `next_link` de la anterior."""

        ...


def response_was_not_found(exc: BaseException) -> bool:
    """True si el error representa un 404 del servicio.

    Cualquier excepción con `status_code == 404` cuenta; así los fakes de
    tests no necesitan importar los errores del adaptador HTTP.
    """

    return getattr(exc, "status_code", None) == 404
