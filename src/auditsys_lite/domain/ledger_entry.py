"""LedgerEntry -- immutable, hash-sealed record of one financial event.

Six fields are sealed by the entry hash: entry_id, created_at, amount,
subject_id, actor_id and previous_hash. The kind and the fraud metadata
ride along with the entry but are not chain-protected; fraud scores in
particular arrive from an external collaborator after the entry has
already been appended.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from auditsys_lite.domain.kinds import EntryKind
from auditsys_lite.domain.types import ActorId, EntryId, HexDigest, SubjectId

_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def format_timestamp(moment: datetime) -> str:
    """Canonical UTC text for a timestamp, always with microseconds.

    Naive datetimes are rejected: their meaning depends on the machine's
    local zone, which would make hashes machine-dependent.
    """
    if moment.tzinfo is None:
        raise ValueError("created_at must be timezone-aware")
    return moment.astimezone(timezone.utc).strftime(_TIMESTAMP_FORMAT)


def parse_timestamp(text: str) -> datetime:
    """Inverse of format_timestamp."""
    return datetime.strptime(text, _TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


def format_amount(amount: Decimal) -> str:
    """Exact fixed-point text of a stored amount.

    Whole cents render with two places (Decimal("250") -> "250.00"). Any
    finer value keeps every digit (Decimal("250.004") -> "250.004"), so
    two different amounts never share a canonical form and a sub-cent
    edit still changes the hash.
    """
    whole, _, fraction = format(amount, "f").partition(".")
    return f"{whole}.{fraction.rstrip('0').ljust(2, '0')}"


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """One sealed ledger entry."""

    entry_id: EntryId
    kind: EntryKind
    amount: Decimal
    created_at: datetime
    subject_id: SubjectId
    actor_id: ActorId
    hash: HexDigest
    previous_hash: HexDigest
    fraud_score: int | None = None      # 0-100, external, not hashed
    fraud_reason: str | None = None

    def sealed_fields(self) -> tuple[str, str, str, str, str, str]:
        """The hash input, in its fixed order, as canonical text."""
        return (
            self.entry_id,
            format_timestamp(self.created_at),
            format_amount(self.amount),
            self.subject_id,
            self.actor_id,
            self.previous_hash,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.entry_id,
            "kind": self.kind.value,
            "amount": format_amount(self.amount),
            "createdAt": format_timestamp(self.created_at),
            "subjectId": self.subject_id,
            "actorId": self.actor_id,
            "hash": self.hash,
            "previousHash": self.previous_hash,
            "fraudScore": self.fraud_score,
            "fraudReason": self.fraud_reason,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LedgerEntry:
        """Rebuild an entry from to_dict() output without recomputing anything."""
        return cls(
            entry_id=data["id"],
            kind=EntryKind.parse(data["kind"]),
            amount=Decimal(data["amount"]),
            created_at=parse_timestamp(data["createdAt"]),
            subject_id=data["subjectId"],
            actor_id=data["actorId"],
            hash=data["hash"],
            previous_hash=data["previousHash"],
            fraud_score=data.get("fraudScore"),
            fraud_reason=data.get("fraudReason"),
        )
