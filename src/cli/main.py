"""CLI `kvresolve`.

Comandos:
- `base-url <id>`: id ARM -> URI del vault.
- `exists <id>`: código de salida 0 si existe, 1 si no.
- `find-id <uri>`: URI del vault -> id ARM (escanea todos los vaults visibles).
- `doctor ...`: diagnóstico y configuración.

Códigos de salida: 0 éxito, 1 ausencia confirmada, 2 error.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

import typer
from rich.console import Console
from rich.logging import RichHandler

from adapters.arm_vaults import ArmVaultsClient
from cli import doctor
from cli.ui_components import print_error
from core.config import AppSettings
from core.domain.resource_id import parse_resource_id
from core.errors import MalformedIdentifierError, VaultResolutionError
from core.services.vault_resolution import resolve_base_url, resolve_id_by_url, vault_exists

T = TypeVar("T")

EXIT_ABSENT = 1
EXIT_ERROR = 2

app = typer.Typer(
    no_args_is_help=True,
    help="Resolve Azure Key Vault resource ids to vault URIs and back.",
)
app.add_typer(doctor.app, name="doctor")

_err_console = Console(stderr=True)


@dataclass
class CliState:
    settings: AppSettings
    subscription_id: str | None
    as_json: bool


def configure_logging(level: str) -> None:
    root = logging.getLogger()
    root.setLevel(level)
    if not any(isinstance(handler, RichHandler) for handler in root.handlers):
        root.addHandler(RichHandler(console=_err_console, show_path=False, log_time_format="[%X]"))


def build_vaults_client(settings: AppSettings, subscription_id: str) -> ArmVaultsClient:
    return ArmVaultsClient(subscription_id=subscription_id, settings=settings)


def _subscription_for(state: CliState, identifier: str | None = None) -> str:
    if state.subscription_id:
        return state.subscription_id
    if state.settings.subscription_id:
        return state.settings.subscription_id
    if identifier:
        try:
            return parse_resource_id(identifier).subscription_id
        except MalformedIdentifierError:
            pass
    print_error(_err_console, "subscription id not configured (use --subscription or KVRESOLVE_SUBSCRIPTION_ID)")
    raise typer.Exit(code=EXIT_ERROR)


def _run(state: CliState, subscription_id: str, operation: Callable[[ArmVaultsClient], Awaitable[T]]) -> T:
    async def _call() -> T:
        async with build_vaults_client(state.settings, subscription_id) as client:
            return await operation(client)

    try:
        return asyncio.run(_call())
    except VaultResolutionError as exc:
        print_error(_err_console, str(exc))
        raise typer.Exit(code=EXIT_ERROR) from exc


def _emit(state: CliState, payload: dict[str, object], text: str) -> None:
    if state.as_json:
        typer.echo(json.dumps(payload, ensure_ascii=False, sort_keys=True))
    else:
        typer.echo(text)


@app.callback()
def main(
    ctx: typer.Context,
    subscription: str | None = typer.Option(
        None,
        "--subscription",
        "-s",
        help="Subscription id (overrides KVRESOLVE_SUBSCRIPTION_ID).",
    ),
    as_json: bool = typer.Option(False, "--json", help="Machine-readable JSON output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable DEBUG logging."),
) -> None:
    settings = AppSettings()
    configure_logging("DEBUG" if verbose else settings.log_level)
    ctx.obj = CliState(settings=settings, subscription_id=subscription, as_json=as_json)


@app.command("base-url")
def base_url(
    ctx: typer.Context,
    identifier: str = typer.Argument(..., help="Key Vault resource id."),
) -> None:
    """Print the data-plane base URI of a Key Vault."""

    state: CliState = ctx.obj
    subscription_id = _subscription_for(state, identifier)
    uri = _run(
        state,
        subscription_id,
        lambda client: resolve_base_url(client=client, identifier=identifier),
    )
    _emit(state, {"identifier": identifier, "vault_uri": uri}, uri)


@app.command("exists")
def exists(
    ctx: typer.Context,
    identifier: str = typer.Argument(..., help="Key Vault resource id."),
) -> None:
    """Check whether a Key Vault exists (exit code 1 when it does not)."""

    state: CliState = ctx.obj
    subscription_id = _subscription_for(state, identifier)
    found = _run(
        state,
        subscription_id,
        lambda client: vault_exists(client=client, identifier=identifier),
    )
    _emit(state, {"identifier": identifier, "exists": found}, "true" if found else "false")
    if not found:
        raise typer.Exit(code=EXIT_ABSENT)


@app.command("find-id")
def find_id(
    ctx: typer.Context,
    vault_uri: str = typer.Argument(..., help="Data-plane URI, e.g. https://my-vault.vault.azure.net/"),
    page_size: int | None = typer.Option(
        None,
        "--page-size",
        min=1,
        max=1000,
        help="Vaults per listing page (defaults to KVRESOLVE_LIST_PAGE_SIZE).",
    ),
) -> None:
    """Find the resource id of the Key Vault serving VAULT_URI."""

    state: CliState = ctx.obj
    subscription_id = _subscription_for(state)
    size = page_size or state.settings.list_page_size
    identifier = _run(
        state,
        subscription_id,
        lambda client: resolve_id_by_url(client=client, vault_uri=vault_uri, page_size=size),
    )
    if identifier is None:
        if state.as_json:
            _emit(state, {"vault_uri": vault_uri, "identifier": None}, "")
        else:
            print_error(_err_console, f"no Key Vault with URI {vault_uri!r} in subscription {subscription_id!r}")
        raise typer.Exit(code=EXIT_ABSENT)
    _emit(state, {"vault_uri": vault_uri, "identifier": identifier}, identifier)


def run() -> None:
    app()
