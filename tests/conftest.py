"""Shared test fixtures: pinned clocks, event builders, prebuilt chains."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from auditsys_lite.crypto.factory import EntryFactory
from auditsys_lite.crypto.hasher import HashAdapter
from auditsys_lite.domain.events import SourceEvent
from auditsys_lite.domain.kinds import EntryKind
from auditsys_lite.domain.ledger_entry import LedgerEntry
from auditsys_lite.store.memory_store import InMemoryLedgerStore

BASE_TIME = datetime(2024, 1, 1, 9, 0, 0, tzinfo=timezone.utc)


class StepClock:
    """Deterministic clock: each call advances by `step`."""

    def __init__(self, start: datetime = BASE_TIME, step: timedelta = timedelta(seconds=1)):
        self._now = start
        self._step = step
        self.calls = 0

    def __call__(self) -> datetime:
        current = self._now
        self._now = self._now + self._step
        self.calls += 1
        return current


def make_event(
    amount: int | str | Decimal = 100,
    kind: EntryKind = EntryKind.SALE,
    subject_id: str = "TKT-7000",
    actor_id: str = "AGT-1001",
) -> SourceEvent:
    return SourceEvent.create(kind, amount, subject_id, actor_id)


def build_chain(
    amounts: list[int | str],
    hasher: HashAdapter | None = None,
    store: InMemoryLedgerStore | None = None,
) -> tuple[InMemoryLedgerStore, list[LedgerEntry]]:
    """Factory + append for each amount, with a pinned clock."""
    factory = EntryFactory(hasher or HashAdapter(), clock=StepClock())
    store = store if store is not None else InMemoryLedgerStore()
    entries = []
    for i, amount in enumerate(amounts):
        event = make_event(amount, subject_id=f"TKT-{7000 + i}")
        entry = factory.create_entry(event, store.head())
        store.append(entry)
        entries.append(entry)
    return store, entries


@pytest.fixture()
def clock() -> StepClock:
    return StepClock()


@pytest.fixture()
def hasher() -> HashAdapter:
    return HashAdapter()


@pytest.fixture()
def factory(hasher, clock) -> EntryFactory:
    return EntryFactory(hasher, clock=clock)


@pytest.fixture()
def three_entry_store() -> InMemoryLedgerStore:
    store, _ = build_chain([100, 250, 75])
    return store
