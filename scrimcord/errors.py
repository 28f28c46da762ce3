"""
scrimcord.errors — Exception Hierarchy
=======================================

Only :class:`ConfigError` is fatal, and only at startup.  Everything raised
inside the ingestion pipeline is caught and logged at the seam that owns it.
"""

from __future__ import annotations


class ScrimcordError(Exception):
    """Base class for all Scrimcord errors."""


class ConfigError(ScrimcordError):
    """Required configuration is missing or malformed."""


class LedgerError(ScrimcordError):
    """A Scrimmage ledger call failed (transport error or non-2xx reply)."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
