"""Key Vault resource-id <-> data-plane URI resolution.

Three operations, all driven through a `VaultsClient`:

- `resolve_base_url`: resource id -> vault URI. Absence is an error
  (`VaultNotFoundError`).
- `vault_exists`: resource id -> bool. Absence is `False`, not an error.
- `resolve_id_by_url`: vault URI -> resource id, by scanning every vault the
  caller can see. No match is `None`, not an error; callers decide whether
  that matters to them.

Input validation always happens before the first remote call. Nothing is
retried and nothing is cached. Every operation accepts `timeout` (seconds,
for the whole operation); on expiry the in-flight call is cancelled and
`TimeoutError` propagates unchanged, as does task cancellation.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Awaitable, TypeVar

from core.config import MAX_LIST_PAGE_SIZE
from core.domain.models import VaultPage, VaultRecord
from core.domain.resource_id import VAULTS_SEGMENT, parse_resource_id
from core.errors import (
    EmptyIdentifierError,
    InconsistentRecordError,
    MalformedIdentifierError,
    MissingPathSegmentError,
    TransientAPIError,
    VaultNotFoundError,
)
from core.interfaces.diagnostics import DiagnosticSink, LoggingDiagnosticSink
from core.interfaces.vaults import VaultsClient, response_was_not_found

T = TypeVar("T")


class ScanState(str, Enum):
    """States of the reverse-lookup scan.

    A fatal failure (first page or page advance) leaves the loop by raising,
    so it has no member here.
    """

    SCANNING = "scanning-page"
    ADVANCING = "advancing-page"
    MATCHED = "matched"
    EXHAUSTED = "exhausted"


async def _with_deadline(awaitable: Awaitable[T], timeout: float | None) -> T:
    if timeout is None:
        return await awaitable
    return await asyncio.wait_for(awaitable, timeout)


def _vault_coordinates(identifier: str) -> tuple[str, str]:
    """Validate a vault id and return `(resource_group, vault_name)`."""

    if not identifier or not identifier.strip():
        raise EmptyIdentifierError("identifier")

    parsed = parse_resource_id(identifier)
    name = parsed.path.get(VAULTS_SEGMENT)
    if name is None:
        raise MissingPathSegmentError(identifier, VAULTS_SEGMENT)
    return parsed.resource_group, name


def _get_failed(exc: Exception, *, resource_group: str, name: str) -> TransientAPIError:
    return TransientAPIError(
        operation="get",
        resource_group=resource_group,
        name=name,
        detail=str(exc),
    )


async def _resolve_base_url(client: VaultsClient, identifier: str) -> str:
    resource_group, name = _vault_coordinates(identifier)
    try:
        record = await client.get_vault(resource_group, name)
    except Exception as exc:
        if response_was_not_found(exc):
            raise VaultNotFoundError(resource_group=resource_group, name=name) from exc
        raise _get_failed(exc, resource_group=resource_group, name=name) from exc

    uri = record.vault_uri
    if uri is None:
        raise InconsistentRecordError(identifier, "vault_uri")
    return uri


async def _vault_exists(client: VaultsClient, identifier: str) -> bool:
    resource_group, name = _vault_coordinates(identifier)
    try:
        record = await client.get_vault(resource_group, name)
    except Exception as exc:
        if response_was_not_found(exc):
            return False
        raise _get_failed(exc, resource_group=resource_group, name=name) from exc

    if record.vault_uri is None:
        raise InconsistentRecordError(identifier, "vault_uri")
    return True


async def resolve_base_url(
    *,
    client: VaultsClient,
    identifier: str,
    timeout: float | None = None,
) -> str:
    """Return the data-plane base URI of the vault named by `identifier`."""

    return await _with_deadline(_resolve_base_url(client, identifier), timeout)


async def vault_exists(
    *,
    client: VaultsClient,
    identifier: str,
    timeout: float | None = None,
) -> bool:
    """Return whether the vault named by `identifier` exists."""

    return await _with_deadline(_vault_exists(client, identifier), timeout)


async def _match_candidate(
    client: VaultsClient,
    entry: VaultRecord,
    *,
    vault_uri: str,
    sink: DiagnosticSink,
) -> str | None:
    """Return the candidate's id if its authoritative URI is `vault_uri`.

    Every failure here is a skip: it is reported to `sink` and yields `None`.
    """

    if not entry.id:
        sink.skipped("list entry has no id", name=entry.name)
        return None

    try:
        parsed = parse_resource_id(entry.id)
        name = parsed.vault_name()
    except (MalformedIdentifierError, MissingPathSegmentError) as exc:
        sink.skipped("unable to parse list entry id", id=entry.id, error=str(exc))
        return None
    resource_group = parsed.resource_group

    # The listing carries no vault properties; read the vault itself.
    try:
        record = await client.get_vault(resource_group, name)
    except Exception as exc:
        sink.skipped(
            "read request failed",
            name=name,
            resource_group=resource_group,
            error=str(exc),
        )
        return None

    if not record.id or record.vault_uri is None:
        sink.skipped("vault has no id or vault uri", name=name, resource_group=resource_group)
        return None

    if record.vault_uri == vault_uri:
        return record.id
    return None


async def _scan_page(
    client: VaultsClient,
    page: VaultPage,
    *,
    vault_uri: str,
    sink: DiagnosticSink,
) -> str | None:
    for entry in page.value:
        match = await _match_candidate(client, entry, vault_uri=vault_uri, sink=sink)
        if match is not None:
            return match
    return None


async def _resolve_id_by_url(
    client: VaultsClient,
    vault_uri: str,
    page_size: int,
    sink: DiagnosticSink,
) -> str | None:
    if not vault_uri or not vault_uri.strip():
        raise EmptyIdentifierError("vault_uri")

    top = max(1, min(int(page_size), MAX_LIST_PAGE_SIZE))
    try:
        page = await client.list_vaults(top)
    except Exception as exc:
        raise TransientAPIError(operation="list", uri=vault_uri, detail=str(exc)) from exc

    state = ScanState.SCANNING
    match: str | None = None
    while state in (ScanState.SCANNING, ScanState.ADVANCING):
        if state is ScanState.SCANNING:
            match = await _scan_page(client, page, vault_uri=vault_uri, sink=sink)
            state = ScanState.ADVANCING if match is None else ScanState.MATCHED
        else:
            next_link = page.next_link
            if not next_link:
                state = ScanState.EXHAUSTED
                continue
            try:
                page = await client.list_vaults_next(next_link)
            except Exception as exc:
                raise TransientAPIError(operation="list_next", uri=vault_uri, detail=str(exc)) from exc
            state = ScanState.SCANNING

    return match


async def resolve_id_by_url(
    *,
    client: VaultsClient,
    vault_uri: str,
    page_size: int = MAX_LIST_PAGE_SIZE,
    diagnostics: DiagnosticSink | None = None,
    timeout: float | None = None,
) -> str | None:
    """Return the resource id of the vault whose URI is `vault_uri`, or `None`.

    First match wins: if two vaults report the same URI, the one enumerated
    first is returned and the other is never looked at.
    """

    sink = diagnostics if diagnostics is not None else LoggingDiagnosticSink()
    return await _with_deadline(_resolve_id_by_url(client, vault_uri, page_size, sink), timeout)
