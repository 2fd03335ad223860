"""Exception taxonomy for the ledger.

Integrity violations are deliberately absent: a broken chain is an
expected outcome and is reported as a VerificationResult, never raised.
"""
from __future__ import annotations


class LedgerError(Exception):
    """Base class for ledger errors."""


class ConfigurationError(LedgerError):
    """Fatal startup problem: missing hash primitive or invalid settings."""


class PreconditionViolation(LedgerError, ValueError):
    """A source event is malformed and was rejected before hashing."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
