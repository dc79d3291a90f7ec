"""Errores tipados del adaptador ARM."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ArmError(Exception):
    """Base error for ARM REST call failures."""

    message: str
    method: str
    url: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class ArmRequestError(ArmError):
    """Transport-level failure (DNS, connect, timeout...); the httpx error is chained."""


@dataclass(frozen=True)
class ArmApiError(ArmError):
    """Non-success status code, or a 2xx body that is not the expected JSON."""

    status_code: int = 0
    code: str | None = None
    response_body: str = ""
