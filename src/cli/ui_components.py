"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/mensajes en múltiples comandos.
"""

from __future__ import annotations

from rich.console import Console
from rich.table import Table
from rich.text import Text

from core.config import AppSettings


def print_error(console: Console, message: str) -> None:
    """Mensaje de error en rojo (la CLI decide el código de salida)."""

    console.print(Text.assemble(("error: ", "bold red"), message), soft_wrap=True)


def build_settings_table(settings: AppSettings) -> Table:
    """Tabla con la configuración efectiva (sin mostrar el token)."""

    table = Table(title="Effective configuration")
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")

    table.add_row("subscription_id", settings.subscription_id or "[dim](not set)[/dim]")
    table.add_row("access_token", "set" if settings.access_token else "[dim](not set)[/dim]")
    table.add_row("arm_endpoint", settings.arm_endpoint)
    table.add_row("vaults_api_version", settings.vaults_api_version)
    table.add_row("resources_api_version", settings.resources_api_version)
    table.add_row("http_timeout_seconds", f"{settings.http_timeout_seconds:g}")
    table.add_row("list_page_size", str(settings.list_page_size))
    return table
