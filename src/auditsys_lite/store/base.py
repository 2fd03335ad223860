"""Abstract base for ledger stores.

Both InMemoryLedgerStore and SqliteLedgerStore implement this interface,
so the session, verifier and tamper simulator work against either.

A store is an ordered, append-only container. It does not validate
hashes on append: corruption is detected only by an explicit
verification pass over a snapshot.
"""
from __future__ import annotations

from abc import ABC, abstractmethod

from auditsys_lite.domain.ledger_entry import LedgerEntry
from auditsys_lite.domain.types import EntryId, SubjectId


class LedgerStoreBase(ABC):
    """Interface that both ledger stores implement."""

    @abstractmethod
    def append(self, entry: LedgerEntry) -> None:
        """Add an entry as the new chain head. Never rejects on hash mismatch."""
        ...

    @abstractmethod
    def all_oldest_first(self) -> list[LedgerEntry]:
        """Point-in-time snapshot in append order (for verification)."""
        ...

    def all_newest_first(self) -> list[LedgerEntry]:
        """Point-in-time snapshot, newest first (for display)."""
        entries = self.all_oldest_first()
        entries.reverse()
        return entries

    @abstractmethod
    def replace_at(self, index: int, entry: LedgerEntry) -> None:
        """Overwrite the entry at an oldest-first index in place.

        Exists for the tamper simulator only. Neighbouring entries and
        their stored hashes are left alone.
        """
        ...

    @abstractmethod
    def head(self) -> LedgerEntry | None:
        """Most recently appended entry, or None for an empty ledger."""
        ...

    @abstractmethod
    def get(self, entry_id: EntryId) -> LedgerEntry:
        """Look up by id. Raises KeyError if absent."""
        ...

    @abstractmethod
    def query_by_subject(self, subject_id: SubjectId) -> list[LedgerEntry]:
        """All entries documenting one business record, oldest first."""
        ...

    @abstractmethod
    def annotate(
        self,
        entry_id: EntryId,
        fraud_score: int | None,
        fraud_reason: str | None = None,
    ) -> LedgerEntry:
        """Attach unhashed fraud metadata to an entry. Raises KeyError if absent."""
        ...

    @abstractmethod
    def count(self) -> int:
        """Total number of entries."""
        ...

    def __len__(self) -> int:
        return self.count()
