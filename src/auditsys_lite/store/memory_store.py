"""In-memory ledger store: a list guarded by one lock.

Reads copy the list while holding the lock, so a verifier always sees a
complete point-in-time sequence and never a half-appended entry. Writers
(append, annotate, replace_at) hold the same lock. This is the reference
store; the session owns one per ledger and hands it out by reference.
"""
from __future__ import annotations

import threading
from dataclasses import replace

from auditsys_lite.domain.ledger_entry import LedgerEntry
from auditsys_lite.domain.types import EntryId, SubjectId
from auditsys_lite.store.base import LedgerStoreBase


class InMemoryLedgerStore(LedgerStoreBase):
    """list[LedgerEntry] plus an id -> position index."""

    __slots__ = ("_entries", "_positions", "_lock")

    def __init__(self) -> None:
        self._entries: list[LedgerEntry] = []
        self._positions: dict[EntryId, int] = {}
        self._lock = threading.Lock()

    def append(self, entry: LedgerEntry) -> None:
        with self._lock:
            if entry.entry_id in self._positions:
                raise ValueError(f"Duplicate entry id: {entry.entry_id}")
            self._positions[entry.entry_id] = len(self._entries)
            self._entries.append(entry)

    def all_oldest_first(self) -> list[LedgerEntry]:
        with self._lock:
            return list(self._entries)

    def replace_at(self, index: int, entry: LedgerEntry) -> None:
        with self._lock:
            if index < 0 or index >= len(self._entries):
                raise IndexError(
                    f"Index {index} out of range "
                    f"(ledger has {len(self._entries)} entries)"
                )
            old = self._entries[index]
            if entry.entry_id != old.entry_id:
                del self._positions[old.entry_id]
                self._positions[entry.entry_id] = index
            self._entries[index] = entry

    def head(self) -> LedgerEntry | None:
        with self._lock:
            return self._entries[-1] if self._entries else None

    def get(self, entry_id: EntryId) -> LedgerEntry:
        with self._lock:
            return self._entries[self._positions[entry_id]]

    def query_by_subject(self, subject_id: SubjectId) -> list[LedgerEntry]:
        with self._lock:
            return [e for e in self._entries if e.subject_id == subject_id]

    def annotate(
        self,
        entry_id: EntryId,
        fraud_score: int | None,
        fraud_reason: str | None = None,
    ) -> LedgerEntry:
        with self._lock:
            index = self._positions[entry_id]
            updated = replace(
                self._entries[index],
                fraud_score=fraud_score,
                fraud_reason=fraud_reason,
            )
            self._entries[index] = updated
            return updated

    def count(self) -> int:
        with self._lock:
            return len(self._entries)
