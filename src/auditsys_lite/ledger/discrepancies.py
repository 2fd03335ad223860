"""Discrepancy registry: flag, track and cross-reference findings.

Discrepancies live beside the ledger, not in it. Flagging one requires
the referenced entry to exist in the session's store; after that the
registry only ever reads the store. Cross-referencing goes through
query_by_subject, so every entry for the same ticket (the sale, its fee,
a later refund) comes back together in ledger order.
"""
from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import replace
from typing import Any

from auditsys_lite.crypto.factory import Clock, utc_now
from auditsys_lite.domain.discrepancy import (
    Discrepancy,
    DiscrepancyKind,
    DiscrepancyStatus,
    InvestigationNote,
)
from auditsys_lite.domain.errors import PreconditionViolation
from auditsys_lite.domain.events import coerce_amount
from auditsys_lite.domain.ledger_entry import LedgerEntry
from auditsys_lite.domain.types import ActorId, DiscrepancyId, EntryId
from auditsys_lite.ledger.session import LedgerSession
from auditsys_lite.notify.notifier import Notification

log = logging.getLogger(__name__)


class DiscrepancyRegistry:
    """In-memory set of discrepancies raised against one ledger session."""

    def __init__(
        self,
        session: LedgerSession,
        clock: Clock = utc_now,
        id_prefix: str = "DIS",
    ) -> None:
        self._session = session
        self._clock = clock
        self._id_prefix = id_prefix
        self._ids = itertools.count(1)
        self._note_ids = itertools.count(1)
        self._items: dict[DiscrepancyId, Discrepancy] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def flag(
        self,
        kind: DiscrepancyKind | str,
        entry_id: EntryId,
        amount: Any,
        details: str | None = None,
        status: DiscrepancyStatus = DiscrepancyStatus.ACTION_REQUIRED,
        assignee_id: ActorId | None = None,
    ) -> tuple[Discrepancy, Notification]:
        """Raise a discrepancy against an existing ledger entry.

        Returns the discrepancy and the notification published for it.
        Raises PreconditionViolation for an unknown kind, a malformed
        amount or an entry id the ledger does not contain.
        """
        try:
            kind = DiscrepancyKind.parse(kind)
        except ValueError as exc:
            raise PreconditionViolation("kind", str(exc)) from None
        amount = coerce_amount(amount)
        try:
            self._session.store.get(entry_id)
        except KeyError:
            raise PreconditionViolation(
                "entry_id", f"no ledger entry {entry_id!r}"
            ) from None

        with self._lock:
            discrepancy = Discrepancy(
                discrepancy_id=f"{self._id_prefix}-{next(self._ids):05d}",
                kind=kind,
                details=details or f"{kind.value} related to transaction {entry_id}",
                amount=amount,
                entry_id=entry_id,
                reported_at=self._clock(),
                status=DiscrepancyStatus.parse(status),
                assignee_id=assignee_id,
            )
            self._items[discrepancy.discrepancy_id] = discrepancy

        log.info(
            "Flagged %s (%s) against %s",
            discrepancy.discrepancy_id, kind.value, entry_id,
        )
        notifier = self._session.notifier
        notification = notifier.check_discrepancy(discrepancy)
        notifier.publish(notification)
        return discrepancy, notification

    def update(
        self,
        discrepancy_id: DiscrepancyId,
        status: DiscrepancyStatus | str | None = None,
        assignee_id: ActorId | None = None,
        note: str | None = None,
        author: ActorId | None = None,
    ) -> Discrepancy:
        """Change status and/or assignee, and optionally append a note.

        Raises KeyError for an unknown id and ValueError when nothing
        would change or a note has no author.
        """
        if note is not None and not note.strip():
            note = None
        if note is not None and not author:
            raise ValueError("a note needs an author")

        with self._lock:
            current = self._items[discrepancy_id]
            changes: dict[str, Any] = {}
            if status is not None:
                parsed = DiscrepancyStatus.parse(status)
                if parsed is not current.status:
                    changes["status"] = parsed
            if assignee_id is not None and assignee_id != current.assignee_id:
                changes["assignee_id"] = assignee_id
            if note is not None:
                changes["notes"] = current.notes + (
                    InvestigationNote(
                        note_id=f"note-{next(self._note_ids)}",
                        content=note.strip(),
                        author=author,
                        created_at=self._clock(),
                    ),
                )
            if not changes:
                raise ValueError(f"No changes for {discrepancy_id}")
            updated = replace(current, **changes)
            self._items[discrepancy_id] = updated

        if "status" in changes:
            log.info(
                "%s: %s -> %s",
                discrepancy_id, current.status.value, updated.status.value,
            )
        return updated

    def get(self, discrepancy_id: DiscrepancyId) -> Discrepancy:
        with self._lock:
            return self._items[discrepancy_id]

    def items(self, status: DiscrepancyStatus | None = None) -> list[Discrepancy]:
        """Discrepancies in the order they were flagged, optionally by status."""
        with self._lock:
            found = list(self._items.values())
        if status is None:
            return found
        return [d for d in found if d.status is status]

    def open_items(self) -> list[Discrepancy]:
        return [d for d in self.items() if d.is_open]

    def for_entry(self, entry_id: EntryId) -> list[Discrepancy]:
        return [d for d in self.items() if d.entry_id == entry_id]

    def cross_reference(self, discrepancy_id: DiscrepancyId) -> list[LedgerEntry]:
        """Every ledger entry for the same subject as the flagged entry."""
        discrepancy = self.get(discrepancy_id)
        store = self._session.store
        subject_id = store.get(discrepancy.entry_id).subject_id
        return store.query_by_subject(subject_id)
