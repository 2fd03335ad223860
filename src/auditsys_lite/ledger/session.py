"""LedgerSession -- the explicitly owned handle to one ledger.

A session bundles the store with the factory, verifier and notifier that
must agree on the same hash adapter. Consumers (the ticker, a CLI
command, a fraud worker) receive the session by reference; there is no
module-level ledger.

record() is the only write path. It reads the chain head, seals the new
entry against it and appends, all inside one lock, so the chain stays
consistent even if several producers share a session. Notification
happens after the lock is released.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Mapping

from auditsys_lite.config import LedgerSettings
from auditsys_lite.crypto.factory import Clock, EntryFactory, utc_now
from auditsys_lite.crypto.hasher import HashAdapter
from auditsys_lite.crypto.verifier import ChainVerifier, VerificationResult
from auditsys_lite.domain.events import SourceEvent
from auditsys_lite.domain.ledger_entry import LedgerEntry
from auditsys_lite.domain.types import EntryId
from auditsys_lite.notify.notifier import AnomalyNotifier, Notification, NotificationSink
from auditsys_lite.store.base import LedgerStoreBase
from auditsys_lite.store.memory_store import InMemoryLedgerStore

log = logging.getLogger(__name__)


class LedgerSession:
    """Owns a ledger store and its single append path."""

    def __init__(
        self,
        store: LedgerStoreBase | None = None,
        hasher: HashAdapter | None = None,
        notifier: AnomalyNotifier | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._hasher = hasher or HashAdapter()
        self._store = store if store is not None else InMemoryLedgerStore()
        self._factory = EntryFactory(self._hasher, clock=clock)
        self._verifier = ChainVerifier(self._hasher)
        self._notifier = notifier or AnomalyNotifier()
        self._write_lock = threading.Lock()
        self._closed = False

    @classmethod
    def from_settings(
        cls,
        settings: LedgerSettings,
        store: LedgerStoreBase | None = None,
        sink: NotificationSink | None = None,
        secret_key: bytes | None = None,
        clock: Clock = utc_now,
    ) -> LedgerSession:
        """Build a session from validated settings.

        Raises ConfigurationError when settings are invalid or the hash
        algorithm is unavailable.
        """
        settings.validate()
        hasher = HashAdapter(settings.hash_algorithm, secret_key=secret_key)
        notifier = AnomalyNotifier(
            sink=sink,
            transaction_threshold=settings.transaction_threshold,
            high_risk_cutoff=settings.high_risk_cutoff,
            link=settings.notification_link,
        )
        return cls(store=store, hasher=hasher, notifier=notifier, clock=clock)

    @property
    def store(self) -> LedgerStoreBase:
        return self._store

    @property
    def hasher(self) -> HashAdapter:
        return self._hasher

    @property
    def verifier(self) -> ChainVerifier:
        return self._verifier

    @property
    def notifier(self) -> AnomalyNotifier:
        return self._notifier

    def record(self, event: SourceEvent | Mapping[str, Any]) -> LedgerEntry:
        """Seal and append one event. Returns the appended entry.

        Raises PreconditionViolation for a malformed event; nothing is
        appended in that case.
        """
        with self._write_lock:
            self._check_open()
            head = self._store.head()
            entry = self._factory.create_entry(event, head)
            self._store.append(entry)
            log.debug("Appended %s as entry %d", entry.entry_id, self._store.count())
        self._notifier.notify(entry)
        return entry

    def attach_fraud_score(
        self,
        entry_id: EntryId,
        score: int,
        reason: str | None = None,
    ) -> tuple[LedgerEntry, list[Notification]]:
        """Attach an externally computed fraud score after the fact.

        The score is metadata outside the hash, so attaching it does not
        affect verification. Raises ValueError for a score outside 0-100
        and KeyError for an unknown entry.
        """
        if isinstance(score, bool) or not 0 <= score <= 100:
            raise ValueError(f"fraud score must be within 0-100, got {score!r}")
        with self._write_lock:
            self._check_open()
            updated = self._store.annotate(entry_id, score, reason)
        emitted = []
        notification = self._notifier.check_fraud(updated)
        if notification is not None:
            self._notifier.publish(notification)
            emitted.append(notification)
        return updated, emitted

    def verify(self, chunk_size: int | None = None) -> VerificationResult:
        """Verify a snapshot of the whole ledger."""
        with self._write_lock:
            self._check_open()
            snapshot = self._store.all_oldest_first()
        if chunk_size is None:
            return self._verifier.verify(snapshot)
        return self._verifier.verify_in_chunks(snapshot, chunk_size)

    def close(self) -> None:
        """End the session; closes the store if it holds a resource."""
        with self._write_lock:
            if self._closed:
                return
            self._closed = True
            close = getattr(self._store, "close", None)
            if close is not None:
                close()

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("Ledger session is closed")

    def __enter__(self) -> LedgerSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
