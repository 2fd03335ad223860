"""Tests for the asyncio sale ticker."""
from __future__ import annotations

import asyncio
import sqlite3
from decimal import Decimal

import pytest

from auditsys_lite.domain.discrepancy import DiscrepancyKind
from auditsys_lite.domain.kinds import EntryKind
from auditsys_lite.ledger.discrepancies import DiscrepancyRegistry
from auditsys_lite.ledger.fraud import FraudAssessment, FraudScoringWorker
from auditsys_lite.ledger.session import LedgerSession
from auditsys_lite.simulation.generator import SaleEventGenerator
from auditsys_lite.simulation.ticker import SaleTicker
from auditsys_lite.store.memory_store import InMemoryLedgerStore

from tests.conftest import StepClock


class UnwritableStore(InMemoryLedgerStore):
    """Every append fails the way a locked or read-only database would."""

    def append(self, entry):
        raise sqlite3.OperationalError("attempt to write a readonly database")


class SlowScorer:
    async def score(self, entry):
        await asyncio.sleep(0.01)
        return FraudAssessment(score=80, reason="simulated")


@pytest.mark.asyncio
async def test_run_appends_every_event():
    session = LedgerSession(clock=StepClock())
    ticker = SaleTicker(session, SaleEventGenerator(seed=1, fee_rate=0.5), interval=0.001)

    appended = await ticker.run(12)

    expected = SaleEventGenerator(seed=1, fee_rate=0.5).events(12)
    assert ticker.ticks == 12
    assert len(appended) == len(expected)
    assert [(e.kind, e.amount, e.subject_id) for e in appended] == [
        (ev.kind, ev.amount, ev.subject_id) for ev in expected
    ]
    assert session.store.all_oldest_first() == appended
    assert session.verify().ok
    assert not ticker.running


@pytest.mark.asyncio
async def test_stop_drains_queued_events():
    session = LedgerSession(clock=StepClock())
    ticker = SaleTicker(session, SaleEventGenerator(fee_rate=0.0), interval=0.001)

    await ticker.start()
    await asyncio.sleep(0.05)
    await ticker.stop()

    assert session.store.count() == ticker.ticks
    assert session.verify().ok


@pytest.mark.asyncio
async def test_fraud_worker_scores_after_append():
    session = LedgerSession(clock=StepClock())
    worker = FraudScoringWorker(session, SlowScorer())
    ticker = SaleTicker(
        session, SaleEventGenerator(fee_rate=0.0), interval=0.001, fraud_worker=worker
    )

    await ticker.run(5)

    entries = session.store.all_oldest_first()
    assert len(entries) == 5
    assert all(e.fraud_score == 80 for e in entries)
    assert session.verify().ok


def test_invalid_interval():
    with pytest.raises(ValueError):
        SaleTicker(LedgerSession(), SaleEventGenerator(), interval=0)


@pytest.mark.asyncio
async def test_store_errors_do_not_stop_the_consumer():
    session = LedgerSession(store=UnwritableStore(), clock=StepClock())
    ticker = SaleTicker(
        session, SaleEventGenerator(fee_rate=0.0), interval=0.001, queue_maxsize=2
    )

    appended = await asyncio.wait_for(ticker.run(8), timeout=5.0)

    assert appended == []
    assert ticker.ticks == 8
    assert ticker.failed == 8
    assert ticker.rejected == 0
    assert not ticker.running


@pytest.mark.asyncio
async def test_recovers_after_transient_store_error():
    class FlakyStore(InMemoryLedgerStore):
        def __init__(self):
            super().__init__()
            self.calls = 0

        def append(self, entry):
            self.calls += 1
            if self.calls == 2:
                raise sqlite3.OperationalError("database is locked")
            super().append(entry)

    session = LedgerSession(store=FlakyStore(), clock=StepClock())
    ticker = SaleTicker(session, SaleEventGenerator(fee_rate=0.0), interval=0.001)

    appended = await ticker.run(4)

    assert len(appended) == 3
    assert ticker.failed == 1
    assert session.verify().ok


@pytest.mark.asyncio
async def test_discrepancies_flagged_on_sales():
    session = LedgerSession(clock=StepClock())
    registry = DiscrepancyRegistry(session)
    ticker = SaleTicker(
        session,
        SaleEventGenerator(fee_rate=0.5),
        interval=0.001,
        discrepancies=registry,
        discrepancy_rate=1.0,
    )

    appended = await ticker.run(6)

    sales = [e for e in appended if e.kind is EntryKind.SALE]
    flagged = registry.items()
    assert [d.entry_id for d in flagged] == [e.entry_id for e in sales]
    assert all(d.kind is DiscrepancyKind.UNACCOUNTED_FEE for d in flagged)
    assert all(Decimal("10") <= d.amount <= Decimal("59") for d in flagged)
    assert session.verify().ok


@pytest.mark.asyncio
async def test_zero_rate_flags_nothing():
    session = LedgerSession(clock=StepClock())
    registry = DiscrepancyRegistry(session)
    ticker = SaleTicker(
        session, SaleEventGenerator(), interval=0.001,
        discrepancies=registry, discrepancy_rate=0.0,
    )
    await ticker.run(5)
    assert len(registry) == 0
