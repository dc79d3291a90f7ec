"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Validación en el borde: la respuesta JSON de ARM se normaliza aquí y el
  resto del Core solo ve campos tipados.
- Los modelos son inmutables (`frozen=True`): se materializan por respuesta y
  nunca se modifican.

Nota:
- Estos modelos describen *qué* es un vault para la resolución, no *cómo* se
  obtiene (eso vive en `adapters/`).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from core.domain.resource_id import parse_resource_id
from core.errors import MalformedIdentifierError


class VaultProperties(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    vault_uri: str | None = Field(
        default=None,
        alias="vaultUri",
        description="URI base del data-plane (p.ej. 'https://my-vault.vault.azure.net/').",
    )


class VaultRecord(BaseModel):
    """Subconjunto del estado de un vault necesario para resolver ids y URIs."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    id: str | None = Field(
        default=None,
        description="ID ARM del vault tal como lo devuelve el servicio.",
    )
    name: str | None = Field(
        default=None,
        description="Nombre del vault.",
    )
    resource_group: str | None = Field(
        default=None,
        description="Resource group, derivado del ID cuando el servicio no lo devuelve aparte.",
    )
    properties: VaultProperties | None = Field(
        default=None,
        description="Propiedades del vault; el listado genérico de recursos no las incluye.",
    )

    @property
    def vault_uri(self) -> str | None:
        if self.properties is None:
            return None
        return self.properties.vault_uri or None

    @classmethod
    def from_arm(cls, payload: dict[str, Any]) -> "VaultRecord":
        """Construye el registro desde el JSON de ARM (ignora campos extra)."""

        resource_group = None
        raw_id = payload.get("id")
        if isinstance(raw_id, str) and raw_id:
            try:
                resource_group = parse_resource_id(raw_id).resource_group
            except MalformedIdentifierError:
                resource_group = None

        return cls.model_validate({**payload, "resource_group": resource_group})


class VaultPage(BaseModel):
    """Una página de la enumeración de vaults."""

    model_config = ConfigDict(frozen=True)

    value: list[VaultRecord] = Field(default_factory=list)
    next_link: str | None = Field(
        default=None,
        description="URL opaca de la siguiente página; `None` cuando no hay más.",
    )

    @property
    def has_more(self) -> bool:
        return bool(self.next_link)
