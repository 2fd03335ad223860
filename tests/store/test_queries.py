"""Tests for EntryFilter."""
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from auditsys_lite.crypto.factory import EntryFactory
from auditsys_lite.domain.kinds import EntryKind
from auditsys_lite.store.memory_store import InMemoryLedgerStore
from auditsys_lite.store.queries import EntryFilter, utc_day

from tests.conftest import StepClock, make_event


@pytest.fixture()
def mixed_store() -> InMemoryLedgerStore:
    """Four entries, one per day from 2024-01-01, alternating kind and actor."""
    factory = EntryFactory(clock=StepClock(step=timedelta(days=1)))
    store = InMemoryLedgerStore()
    rows = [
        (EntryKind.SALE, "AGT-1001"),
        (EntryKind.FEE, "AGT-1002"),
        (EntryKind.SALE, "AGT-1002"),
        (EntryKind.REFUND, "AGT-1001"),
    ]
    for kind, actor in rows:
        event = make_event(50, kind=kind, actor_id=actor)
        store.append(factory.create_entry(event, store.head()))
    return store


class TestEntryFilter:

    def test_empty_filter_matches_all(self, mixed_store):
        assert EntryFilter().apply(mixed_store.all_oldest_first()) == mixed_store.all_oldest_first()

    def test_by_kind(self, mixed_store):
        result = EntryFilter(kind=EntryKind.SALE).apply(mixed_store.all_oldest_first())
        assert [e.actor_id for e in result] == ["AGT-1001", "AGT-1002"]

    def test_by_actor(self, mixed_store):
        result = EntryFilter(actor_id="AGT-1001").apply(mixed_store.all_oldest_first())
        assert [e.kind for e in result] == [EntryKind.SALE, EntryKind.REFUND]

    def test_date_range_inclusive(self, mixed_store):
        f = EntryFilter(start=date(2024, 1, 2), end=date(2024, 1, 3))
        result = f.apply(mixed_store.all_oldest_first())
        assert [utc_day(e.created_at) for e in result] == [date(2024, 1, 2), date(2024, 1, 3)]

    def test_combined(self, mixed_store):
        f = EntryFilter(kind=EntryKind.SALE, actor_id="AGT-1002", start=date(2024, 1, 3))
        assert len(f.apply(mixed_store.all_oldest_first())) == 1

    def test_inverted_range_rejected(self):
        with pytest.raises(ValueError):
            EntryFilter(start=date(2024, 2, 1), end=date(2024, 1, 1))

    def test_utc_day_converts_zone(self):
        plus_five = timezone(timedelta(hours=5))
        moment = datetime(2024, 1, 2, 3, 0, tzinfo=plus_five)
        assert utc_day(moment) == date(2024, 1, 1)
