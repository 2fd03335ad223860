"""Domain model for auditsys-lite.

Re-exports all public types for convenient access:
    from auditsys_lite.domain import LedgerEntry, SourceEvent, EntryKind
"""
from auditsys_lite.domain.discrepancy import (
    Discrepancy,
    DiscrepancyKind,
    DiscrepancyStatus,
    InvestigationNote,
)
from auditsys_lite.domain.errors import (
    ConfigurationError,
    LedgerError,
    PreconditionViolation,
)
from auditsys_lite.domain.events import SourceEvent, coerce_amount
from auditsys_lite.domain.kinds import EntryKind
from auditsys_lite.domain.ledger_entry import (
    LedgerEntry,
    format_amount,
    format_timestamp,
    parse_timestamp,
)
from auditsys_lite.domain.types import (
    CENTS,
    ActorId,
    DiscrepancyId,
    EntryId,
    HexDigest,
    SubjectId,
)

__all__ = [
    "Discrepancy",
    "DiscrepancyKind",
    "DiscrepancyStatus",
    "InvestigationNote",
    "ConfigurationError",
    "LedgerError",
    "PreconditionViolation",
    "SourceEvent",
    "coerce_amount",
    "EntryKind",
    "LedgerEntry",
    "format_amount",
    "format_timestamp",
    "parse_timestamp",
    "CENTS",
    "ActorId",
    "DiscrepancyId",
    "EntryId",
    "HexDigest",
    "SubjectId",
]
