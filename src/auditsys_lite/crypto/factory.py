"""Entry factory: seal a source event into a LedgerEntry.

The factory binds the new entry to the current chain head and computes
its hash. It never touches a store; the caller appends the result. Kept
separate from the store so the store can stay a dumb container that does
no validation of its own.
"""
from __future__ import annotations

import itertools
import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from auditsys_lite.crypto.hasher import HashAdapter
from auditsys_lite.domain.events import SourceEvent
from auditsys_lite.domain.ledger_entry import LedgerEntry

log = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EntryFactory:
    """Builds sealed entries from source events.

    Args:
        hasher: the digest used for sealing (must match the verifier's).
        clock: returns the current timezone-aware time; injectable so tests
            can pin timestamps and get reproducible hashes.
        id_prefix: prefix for generated entry ids.
    """

    def __init__(
        self,
        hasher: HashAdapter | None = None,
        clock: Clock = utc_now,
        id_prefix: str = "TXN",
    ) -> None:
        self._hasher = hasher or HashAdapter()
        self._clock = clock
        self._id_prefix = id_prefix
        self._counter = itertools.count()

    @property
    def hasher(self) -> HashAdapter:
        return self._hasher

    def next_id(self, moment: datetime) -> str:
        """Millisecond timestamp plus a per-factory sequence number.

        The sequence keeps ids distinct and ordered when several entries
        are created within the same millisecond.
        """
        millis = int(moment.timestamp() * 1000)
        return f"{self._id_prefix}-{millis:013d}-{next(self._counter):04d}"

    def create_entry(
        self,
        event: SourceEvent | Mapping[str, Any],
        chain_head: LedgerEntry | None,
    ) -> LedgerEntry:
        """Seal an event as the successor of chain_head (None = first entry).

        Raises PreconditionViolation for a malformed event.
        """
        if isinstance(event, SourceEvent):
            # Re-validate: a SourceEvent built directly skips create().
            event = SourceEvent.create(
                event.kind, event.amount, event.subject_id, event.actor_id
            )
        else:
            event = SourceEvent.from_dict(event)

        created_at = self._clock()
        if chain_head is not None and created_at < chain_head.created_at:
            # Wall clocks can step backwards; the ledger's timestamps must not.
            created_at = chain_head.created_at

        previous_hash = chain_head.hash if chain_head is not None else self._hasher.genesis
        entry_id = self.next_id(created_at)

        unsealed = LedgerEntry(
            entry_id=entry_id,
            kind=event.kind,
            amount=event.amount,
            created_at=created_at,
            subject_id=event.subject_id,
            actor_id=event.actor_id,
            hash="",
            previous_hash=previous_hash,
        )
        sealed_hash = self._hasher.digest(unsealed.sealed_fields())
        log.debug("Sealed %s (%s %s) -> %s", entry_id, event.kind.value,
                  event.amount, sealed_hash[:16])
        return replace(unsealed, hash=sealed_hash)
