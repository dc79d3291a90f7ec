"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que el adaptador ARM lea endpoint, versiones de API y timeouts de
  forma consistente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import set_key
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_DIR_NAME = "kv-resolve"
CONFIG_DIR_ENV = "KVRESOLVE_CONFIG_DIR"
MAX_LIST_PAGE_SIZE = 1000

_ENV_HEADER = "# kv-resolve: configuración de usuario (la escribe `kvresolve doctor configure`)\n"


def get_user_config_dir() -> Path:
    """Carpeta de configuración por usuario.

    `KVRESOLVE_CONFIG_DIR` manda si está definida; si no, la convención de
    cada plataforma (APPDATA, Application Support, XDG).
    """

    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser()

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA") or Path.home() / "AppData" / "Roaming")
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")
    return base / APP_DIR_NAME


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def write_user_env_vars(values: dict[str, str | None]) -> Path:
    """Actualiza claves del .env de usuario en su sitio.

    Por qué python-dotenv:
    - Es el mismo parser con el que pydantic-settings lee `env_file`, así que
      lo que se escribe aquí se lee igual al arrancar.
    - `set_key` reescribe sólo la línea de cada clave: comentarios, orden y
      claves ajenas se conservan. Los valores `None` no tocan el fichero.
    """

    env_path = get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)
    if not env_path.exists():
        env_path.write_text(_ENV_HEADER, encoding="utf-8")

    for key, value in values.items():
        if value is not None:
            set_key(env_path, key, value, quote_mode="never")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="KVRESOLVE_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    subscription_id: str | None = Field(
        default=None,
        description="Suscripción en la que se buscan los vaults.",
    )
    access_token: str | None = Field(
        default=None,
        description="Bearer token para ARM (obtenerlo queda fuera de esta herramienta).",
    )
    arm_endpoint: str = Field(
        default="https://management.azure.com",
        min_length=8,
        description="Endpoint de Azure Resource Manager (nubes soberanas usan otro).",
    )
    vaults_api_version: str = Field(
        default="2018-02-14",
        min_length=1,
        description="api-version para Microsoft.KeyVault/vaults.",
    )
    resources_api_version: str = Field(
        default="2015-11-01",
        min_length=1,
        description="api-version del listado genérico de recursos.",
    )

    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout por request (segundos).",
    )
    user_agent: str = Field(
        default="kv-resolve/0.1",
        min_length=1,
        description="User-Agent para las peticiones a ARM.",
    )
    list_page_size: int = Field(
        default=MAX_LIST_PAGE_SIZE,
        ge=1,
        le=MAX_LIST_PAGE_SIZE,
        description="Tamaño de página ($top) al enumerar vaults.",
    )

    log_level: str = Field(
        default="WARNING",
        description="Nivel de logging de la CLI (DEBUG, INFO, WARNING...).",
    )

    @field_validator("arm_endpoint")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"unknown log level: {value!r}")
        return level
