"""Typed errors for the Core.

Why a dedicated module:
- Callers have to tell "confirmed absent" apart from "the call failed", and
  the forward and reverse lookups draw that line differently.
- Every remote failure keeps its context (operation, resource group, name or
  URI) so nobody has to re-derive it when reading a traceback.
"""

from __future__ import annotations


class VaultResolutionError(Exception):
    """Base error for every failure raised by the resolution services."""


class EmptyIdentifierError(VaultResolutionError, ValueError):
    """The caller passed an empty identifier or URI."""

    def __init__(self, what: str = "identifier") -> None:
        super().__init__(f"{what} is empty")
        self.what = what


class MalformedIdentifierError(VaultResolutionError, ValueError):
    """The resource identifier could not be parsed."""

    def __init__(self, identifier: str, reason: str) -> None:
        super().__init__(f"cannot parse resource id {identifier!r}: {reason}")
        self.identifier = identifier
        self.reason = reason


class MissingPathSegmentError(VaultResolutionError, ValueError):
    """The identifier parsed but does not name a vault."""

    def __init__(self, identifier: str, segment: str = "vaults") -> None:
        super().__init__(f"resource id does not contain `{segment}`: {identifier!r}")
        self.identifier = identifier
        self.segment = segment


class VaultNotFoundError(VaultResolutionError, LookupError):
    """The service reported the vault absent (forward lookup only)."""

    def __init__(self, *, resource_group: str, name: str) -> None:
        super().__init__(f"unable to find Key Vault {name!r} (resource group {resource_group!r})")
        self.resource_group = resource_group
        self.name = name


class InconsistentRecordError(VaultResolutionError):
    """A successful response is missing fields the resolution relies on."""

    def __init__(self, identifier: str, missing: str = "vault_uri") -> None:
        super().__init__(f"vault {identifier!r} response has no {missing}")
        self.identifier = identifier
        self.missing = missing


class TransientAPIError(VaultResolutionError):
    """A remote call failed for a reason other than absence.

    The original exception is chained as ``__cause__``.
    """

    def __init__(
        self,
        *,
        operation: str,
        resource_group: str | None = None,
        name: str | None = None,
        uri: str | None = None,
        detail: str | None = None,
    ) -> None:
        self.operation = operation
        self.resource_group = resource_group
        self.name = name
        self.uri = uri
        self.detail = detail
        super().__init__(self._render())

    def _render(self) -> str:
        parts: list[str] = [f"{self.operation} request failed"]
        if self.name is not None:
            parts.append(f"Key Vault {self.name!r}")
        if self.resource_group is not None:
            parts.append(f"(resource group {self.resource_group!r})")
        if self.uri is not None:
            parts.append(f"while looking for {self.uri!r}")
        message = " ".join(parts)
        if self.detail:
            message = f"{message}: {self.detail}"
        return message
