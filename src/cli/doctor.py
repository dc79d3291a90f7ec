"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import httpx
import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import build_async_client
from cli.ui_components import build_settings_table
from core.config import AppSettings, write_user_env_vars

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()

SUBSCRIPTIONS_API_VERSION = "2020-01-01"


async def _check_arm(settings: AppSettings) -> tuple[bool, str]:
    """GET /subscriptions: checks both connectivity and the bearer token."""

    try:
        async with build_async_client(settings) as client:
            response = await client.get("/subscriptions", params={"api-version": SUBSCRIPTIONS_API_VERSION})
    except httpx.HTTPError as exc:
        return False, str(exc) or exc.__class__.__name__
    if response.status_code == 401:
        return False, "HTTP 401 (missing or expired access token)"
    return response.is_success, f"HTTP {response.status_code}"


@app.command()
def run() -> None:
    """Show the effective configuration and check ARM connectivity."""

    settings = AppSettings()
    _console.print(build_settings_table(settings))

    table = Table(title="kv-resolve Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    if settings.subscription_id:
        table.add_row("Subscription", "OK", settings.subscription_id)
    else:
        table.add_row("Subscription", "MISSING", "Set KVRESOLVE_SUBSCRIPTION_ID or run `doctor configure`")

    if settings.access_token:
        ok_arm, detail_arm = asyncio.run(_check_arm(settings))
        table.add_row("ARM connectivity", "OK" if ok_arm else "FAIL", detail_arm)
    else:
        table.add_row("ARM connectivity", "SKIPPED", "No access token (KVRESOLVE_ACCESS_TOKEN)")

    _console.print(table)


@app.command()
def configure() -> None:
    """Interactive setup (stores config in the user config .env).

    The access token is short-lived and is never written to disk.
    """

    defaults = AppSettings()
    subscription_id = typer.prompt(
        "Subscription id",
        default=defaults.subscription_id or "",
        show_default=bool(defaults.subscription_id),
    ).strip()
    endpoint = typer.prompt("ARM endpoint", default=defaults.arm_endpoint, show_default=True).strip()

    if not subscription_id:
        raise typer.BadParameter("subscription id is required")

    env_path = write_user_env_vars(
        {
            "KVRESOLVE_SUBSCRIPTION_ID": subscription_id,
            "KVRESOLVE_ARM_ENDPOINT": endpoint or None,
        }
    )

    _console.print(f"[green]Saved config to:[/green] {env_path}")
