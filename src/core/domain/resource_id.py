"""Parser de identificadores ARM.

Gramática (la misma que usa el provider AzureRM de Terraform):

    /subscriptions/<sub>/resourceGroups/<rg>/providers/<namespace>/<type>/<name>[/<type>/<name>...]

- El path se parte en pares clave/valor; un número impar de segmentos es un error.
- `subscriptions` y `resourceGroups` son obligatorios; `providers` es opcional
  (un id de resource group no tiene provider).
- El resto de pares queda en `path`, en orden.
"""

from __future__ import annotations

from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field

from core.errors import MalformedIdentifierError, MissingPathSegmentError

VAULTS_SEGMENT = "vaults"


class ResourceIdentifier(BaseModel):
    """Identificador ARM ya parseado (inmutable)."""

    model_config = ConfigDict(frozen=True)

    subscription_id: str = Field(..., min_length=1, description="ID de la suscripción.")
    resource_group: str = Field(..., min_length=1, description="Nombre del resource group.")
    provider: str = Field(
        default="",
        description="Namespace del resource provider (p.ej. 'Microsoft.KeyVault').",
    )
    path: dict[str, str] = Field(
        default_factory=dict,
        description="Pares tipo -> nombre en el orden del id (p.ej. {'vaults': 'my-vault'}).",
    )

    def vault_name(self) -> str:
        """Nombre del vault; `MissingPathSegmentError` si el id no apunta a un vault."""

        name = self.path.get(VAULTS_SEGMENT)
        if name is None:
            raise MissingPathSegmentError(str(self), VAULTS_SEGMENT)
        return name

    def __str__(self) -> str:
        out = f"/subscriptions/{self.subscription_id}/resourceGroups/{self.resource_group}"
        if self.provider:
            out += f"/providers/{self.provider}"
        for key, value in self.path.items():
            out += f"/{key}/{value}"
        return out


def parse_resource_id(raw: str) -> ResourceIdentifier:
    """Parsea un id ARM (path o URL completa de management)."""

    text = (raw or "").strip()
    if not text:
        raise MalformedIdentifierError(raw, "identifier is empty")

    if "://" in text:
        text = urlsplit(text).path

    components = text.strip("/").split("/")
    if len(components) % 2 != 0:
        raise MalformedIdentifierError(raw, "the number of path segments is not divisible by 2")

    subscription_id = ""
    resource_group = ""
    provider = ""
    path: dict[str, str] = {}

    for key, value in zip(components[0::2], components[1::2]):
        if not key or not value:
            raise MalformedIdentifierError(raw, "key/value cannot be empty strings")

        lowered = key.lower()
        if lowered == "subscriptions" and not subscription_id:
            subscription_id = value
        elif lowered == "resourcegroups" and not resource_group:
            resource_group = value
        elif lowered == "providers" and not provider:
            provider = value
        else:
            path[key] = value

    if not subscription_id:
        raise MalformedIdentifierError(raw, "no subscription id found")
    if not resource_group:
        raise MalformedIdentifierError(raw, "no resource group name found")

    return ResourceIdentifier(
        subscription_id=subscription_id,
        resource_group=resource_group,
        provider=provider,
        path=path,
    )
