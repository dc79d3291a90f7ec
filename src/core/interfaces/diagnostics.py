"""Sumidero de diagnósticos inyectable.

La búsqueda inversa descarta candidatos sin abortar el escaneo; cada descarte
se reporta aquí en vez de escribir directamente a un logger global.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class DiagnosticSink(Protocol):
    def skipped(self, reason: str, **context: Any) -> None:
        """Un candidato fue descartado (no es un error)."""

        ...


class LoggingDiagnosticSink:
    """Implementación por defecto: registros DEBUG vía `logging`."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("core.services.vault_resolution")

    def skipped(self, reason: str, **context: Any) -> None:
        if context:
            details = ", ".join(f"{key}={value!r}" for key, value in sorted(context.items()))
            self._logger.debug("skipping vault candidate: %s (%s)", reason, details)
        else:
            self._logger.debug("skipping vault candidate: %s", reason)
