"""Discrepancies: reconciliation findings raised against ledger entries.

A discrepancy records that something about a transaction does not add
up (a price that differs from the ticket, a fee nobody accounted for, a
deposit that never arrived). It points at the ledger entry it concerns
by id and never modifies it; the ledger stays append-only and its hash
chain is unaffected by anything that happens to a discrepancy.

Lifecycle:
    ACTION_REQUIRED -> PENDING -> RESOLVED, reopenable back to either
open state. Every change is a new frozen value.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from auditsys_lite.domain.ledger_entry import format_amount, format_timestamp
from auditsys_lite.domain.types import ActorId, DiscrepancyId, EntryId


class DiscrepancyKind(Enum):
    PRICE_MISMATCH = "Price Mismatch"
    UNACCOUNTED_FEE = "Unaccounted Fee"
    MISSING_DEPOSIT = "Missing Deposit"

    @classmethod
    def parse(cls, value: str | DiscrepancyKind) -> DiscrepancyKind:
        """Accept a member, its wire value ("Price Mismatch") or its name."""
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for kind in cls:
            if text == kind.value or text.upper() == kind.name:
                return kind
        raise ValueError(f"Unknown discrepancy kind: {value!r}")


class DiscrepancyStatus(Enum):
    ACTION_REQUIRED = "Action Required"
    PENDING = "Pending Investigation"
    RESOLVED = "Resolved"

    @classmethod
    def parse(cls, value: str | DiscrepancyStatus) -> DiscrepancyStatus:
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for status in cls:
            if text == status.value or text.upper() == status.name:
                return status
        raise ValueError(f"Unknown discrepancy status: {value!r}")

    @property
    def is_open(self) -> bool:
        return self is not DiscrepancyStatus.RESOLVED


@dataclass(frozen=True, slots=True)
class InvestigationNote:
    note_id: str
    content: str
    author: ActorId
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.note_id,
            "content": self.content,
            "author": self.author,
            "timestamp": format_timestamp(self.created_at),
        }


@dataclass(frozen=True, slots=True)
class Discrepancy:
    """One finding against one ledger entry."""

    discrepancy_id: DiscrepancyId
    kind: DiscrepancyKind
    details: str
    amount: Decimal                 # disputed amount, not the entry's amount
    entry_id: EntryId
    reported_at: datetime
    status: DiscrepancyStatus = DiscrepancyStatus.ACTION_REQUIRED
    assignee_id: ActorId | None = None
    notes: tuple[InvestigationNote, ...] = ()

    @property
    def is_open(self) -> bool:
        return self.status.is_open

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.discrepancy_id,
            "type": self.kind.value,
            "details": self.details,
            "amount": format_amount(self.amount),
            "associatedTransactionId": self.entry_id,
            "reportedAt": format_timestamp(self.reported_at),
            "status": self.status.value,
            "assigneeId": self.assignee_id,
            "notes": [note.to_dict() for note in self.notes],
        }
