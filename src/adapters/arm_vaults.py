"""Cliente ARM REST para Microsoft.KeyVault/vaults.

Implementa `core.interfaces.vaults.VaultsClient`:
- `get_vault`: GET del recurso vault (incluye `properties.vaultUri`).
- `list_vaults`: listado genérico de recursos de la suscripción filtrado por
  tipo. Ese listado no trae `properties`, por eso la búsqueda inversa hace
  una lectura puntual por candidato.
- `list_vaults_next`: sigue el `nextLink` opaco devuelto por ARM.

Sin reintentos: cada método hace exactamente una petición HTTP.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from adapters.arm_errors import ArmApiError, ArmRequestError
from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.models import VaultPage, VaultRecord
from core.interfaces.vaults import VaultsClient

logger = logging.getLogger(__name__)

VAULT_RESOURCE_TYPE = "Microsoft.KeyVault/vaults"


class ArmVaultsClient(VaultsClient):
    """Acceso a vaults de una suscripción vía ARM.

    Se usa como context manager async cuando el cliente httpx es propio:

        async with ArmVaultsClient(settings=settings, subscription_id=sub) as vaults:
            uri = await resolve_base_url(client=vaults, identifier=vault_id)
    """

    def __init__(
        self,
        *,
        subscription_id: str,
        settings: AppSettings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not subscription_id:
            raise ValueError("subscription_id is required")
        self._settings = settings or AppSettings()
        self._subscription_id = subscription_id
        self._owns_client = http_client is None
        self._http = http_client or build_async_client(self._settings)

    @property
    def subscription_id(self) -> str:
        return self._subscription_id

    async def __aenter__(self) -> "ArmVaultsClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    def _vault_path(self, resource_group: str, name: str) -> str:
        return (
            f"/subscriptions/{quote(self._subscription_id, safe='')}"
            f"/resourceGroups/{quote(resource_group, safe='')}"
            f"/providers/{VAULT_RESOURCE_TYPE}/{quote(name, safe='')}"
        )

    async def get_vault(self, resource_group: str, name: str) -> VaultRecord:
        payload = await self._get_json(
            self._vault_path(resource_group, name),
            params={"api-version": self._settings.vaults_api_version},
        )
        return VaultRecord.from_arm(payload)

    async def list_vaults(self, top: int) -> VaultPage:
        payload = await self._get_json(
            f"/subscriptions/{quote(self._subscription_id, safe='')}/resources",
            params={
                "$filter": f"resourceType eq '{VAULT_RESOURCE_TYPE}'",
                "$top": str(top),
                "api-version": self._settings.resources_api_version,
            },
        )
        return self._page(payload)

    async def list_vaults_next(self, next_link: str) -> VaultPage:
        # nextLink ya trae api-version, filtro y token de continuación.
        payload = await self._get_json(next_link)
        return self._page(payload)

    @staticmethod
    def _page(payload: dict[str, Any]) -> VaultPage:
        raw_items = payload.get("value")
        records: list[VaultRecord] = []
        if isinstance(raw_items, list):
            for item in raw_items:
                if not isinstance(item, dict):
                    continue
                records.append(VaultRecord.from_arm(item))
        next_link = payload.get("nextLink")
        return VaultPage(
            value=records,
            next_link=next_link if isinstance(next_link, str) and next_link else None,
        )

    async def _get_json(self, url: str, *, params: dict[str, str] | None = None) -> dict[str, Any]:
        logger.debug("GET %s", url)
        try:
            response = await self._http.get(url, params=params)
        except httpx.HTTPError as exc:
            raise ArmRequestError(
                message=f"GET {url} failed: {exc}",
                method="GET",
                url=url,
            ) from exc

        request_url = str(response.request.url)
        if not response.is_success:
            code, message = _parse_arm_error(response)
            raise ArmApiError(
                message=f"GET {request_url} returned {response.status_code}: {code or 'error'}: {message}",
                method="GET",
                url=request_url,
                status_code=response.status_code,
                code=code,
                response_body=response.text,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise ArmApiError(
                message=f"GET {request_url} returned a body that is not JSON",
                method="GET",
                url=request_url,
                status_code=response.status_code,
                response_body=response.text,
            ) from exc
        if not isinstance(data, dict):
            raise ArmApiError(
                message=f"GET {request_url} returned {type(data).__name__}, expected an object",
                method="GET",
                url=request_url,
                status_code=response.status_code,
                response_body=response.text,
            )
        return data


def _parse_arm_error(response: httpx.Response) -> tuple[str | None, str]:
    """Extrae `(code, message)` del cuerpo `{"error": {...}}` de ARM."""

    try:
        body = response.json()
    except ValueError:
        return None, response.text.strip() or response.reason_phrase

    error = body.get("error") if isinstance(body, dict) else None
    if not isinstance(error, dict):
        return None, response.text.strip() or response.reason_phrase

    code = error.get("code")
    message = error.get("message")
    return (
        code if isinstance(code, str) else None,
        message if isinstance(message, str) else response.reason_phrase,
    )
