"""Query objects for ledger views.

EntryFilter narrows a snapshot by kind, actor and an inclusive date
range, the filters a ledger screen offers. Filtering is for display
only: verification always runs over the full, unfiltered chain, since a
filtered subsequence has gaps that would look like broken links.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Iterable

from auditsys_lite.domain.kinds import EntryKind
from auditsys_lite.domain.ledger_entry import LedgerEntry
from auditsys_lite.domain.types import ActorId


def utc_day(moment: datetime) -> date:
    """Calendar day of a timestamp in UTC."""
    return moment.astimezone(timezone.utc).date()


@dataclass(frozen=True, slots=True)
class EntryFilter:
    """All set criteria must match. Dates are UTC calendar days, inclusive."""
    kind: EntryKind | None = None
    actor_id: ActorId | None = None
    start: date | None = None
    end: date | None = None

    def __post_init__(self) -> None:
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValueError(
                f"start ({self.start}) must be <= end ({self.end})"
            )

    def matches(self, entry: LedgerEntry) -> bool:
        if self.kind is not None and entry.kind is not self.kind:
            return False
        if self.actor_id is not None and entry.actor_id != self.actor_id:
            return False
        day = utc_day(entry.created_at)
        if self.start is not None and day < self.start:
            return False
        if self.end is not None and day > self.end:
            return False
        return True

    def apply(self, entries: Iterable[LedgerEntry]) -> list[LedgerEntry]:
        return [e for e in entries if self.matches(e)]
