"""Periodic sale simulation on an asyncio event loop.

Architecture:
    producer task: every `interval` seconds, ask the generator for the
        next sale and put its events on an asyncio.Queue
    consumer task: drain the queue into LedgerSession.record(), then hand
        each appended entry to the fraud worker (if any), and flag an
        Unaccounted Fee discrepancy on a sampled fraction of sales

The queue decouples event generation from the append path. The consumer
is the only task that writes, so appends stay strictly sequential.
stop() cancels the producer, pushes a None sentinel and waits for the
consumer to drain everything queued before it.
"""
from __future__ import annotations

import asyncio
import logging
import random

from auditsys_lite.domain.errors import PreconditionViolation
from auditsys_lite.domain.discrepancy import DiscrepancyKind
from auditsys_lite.domain.events import SourceEvent
from auditsys_lite.domain.kinds import EntryKind
from auditsys_lite.domain.ledger_entry import LedgerEntry
from auditsys_lite.ledger.discrepancies import DiscrepancyRegistry
from auditsys_lite.ledger.fraud import FraudScoringWorker
from auditsys_lite.ledger.session import LedgerSession
from auditsys_lite.simulation.generator import SaleEventGenerator

log = logging.getLogger(__name__)


class SaleTicker:
    """Timer-driven producer feeding a ledger session through a queue.

    Args:
        session: ledger to append to.
        generator: source of sale events.
        interval: seconds between ticks.
        fraud_worker: optional scorer run after each append.
        queue_maxsize: bound on queued events (producer waits when full).
        discrepancies: optional registry for simulated findings.
        discrepancy_rate: chance that a sale gets a discrepancy.
        seed: seeds the discrepancy sampling.
    """

    def __init__(
        self,
        session: LedgerSession,
        generator: SaleEventGenerator,
        interval: float = 5.0,
        fraud_worker: FraudScoringWorker | None = None,
        queue_maxsize: int = 1_000,
        discrepancies: DiscrepancyRegistry | None = None,
        discrepancy_rate: float = 0.1,
        seed: int = 0,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        if not 0.0 <= discrepancy_rate <= 1.0:
            raise ValueError(
                f"discrepancy_rate must be within [0, 1], got {discrepancy_rate}"
            )
        self._session = session
        self._generator = generator
        self._interval = interval
        self._fraud_worker = fraud_worker
        self._discrepancies = discrepancies
        self._discrepancy_rate = discrepancy_rate
        self._rng = random.Random(seed)
        self._queue: asyncio.Queue[SourceEvent | None] = asyncio.Queue(
            maxsize=queue_maxsize
        )
        self._producer: asyncio.Task | None = None
        self._consumer: asyncio.Task | None = None
        self._ticks = 0
        self._appended: list[LedgerEntry] = []
        self._rejected = 0
        self._failed = 0

    @property
    def ticks(self) -> int:
        return self._ticks

    @property
    def appended(self) -> list[LedgerEntry]:
        """Entries this ticker appended, in order."""
        return list(self._appended)

    @property
    def rejected(self) -> int:
        """Events the session refused as malformed."""
        return self._rejected

    @property
    def failed(self) -> int:
        """Events the store failed to append (I/O errors, duplicate ids)."""
        return self._failed

    @property
    def running(self) -> bool:
        return self._consumer is not None

    async def start(self, max_ticks: int | None = None) -> None:
        """Start producer and consumer. The producer stops after max_ticks."""
        if self.running:
            return
        self._consumer = asyncio.ensure_future(self._consume())
        self._producer = asyncio.ensure_future(self._produce(max_ticks))
        log.info("Sale ticker started (interval=%.3fs)", self._interval)

    async def stop(self) -> None:
        """Stop producing, drain the queue, and wait for the consumer."""
        if self._producer is not None:
            self._producer.cancel()
            try:
                await self._producer
            except asyncio.CancelledError:
                pass
            self._producer = None
        if self._consumer is not None:
            consumer, self._consumer = self._consumer, None
            if not consumer.done():
                await self._queue.put(None)
            await consumer
        if self._fraud_worker is not None:
            await self._fraud_worker.drain()
        log.info("Sale ticker stopped after %d ticks", self._ticks)

    async def run(self, ticks: int) -> list[LedgerEntry]:
        """Run exactly `ticks` ticks, then stop. Returns appended entries."""
        await self.start(max_ticks=ticks)
        if self._producer is not None:
            await self._producer
        await self.stop()
        return self.appended

    async def _produce(self, max_ticks: int | None) -> None:
        while max_ticks is None or self._ticks < max_ticks:
            await asyncio.sleep(self._interval)
            for event in self._generator.next_sale():
                await self._queue.put(event)
            self._ticks += 1

    async def _consume(self) -> None:
        while True:
            event = await self._queue.get()
            if event is None:
                return
            self._append(event)

    def _append(self, event: SourceEvent) -> None:
        try:
            entry = self._session.record(event)
        except PreconditionViolation:
            self._rejected += 1
            log.exception("Rejected simulated event for %s", event.subject_id)
            return
        except Exception:
            self._failed += 1
            log.exception("Failed to append simulated event for %s", event.subject_id)
            return
        self._appended.append(entry)
        if self._fraud_worker is not None:
            self._fraud_worker.submit(entry)
        if self._discrepancies is not None and entry.kind is EntryKind.SALE:
            try:
                self._maybe_flag(entry)
            except Exception:
                log.exception("Failed to flag discrepancy for %s", entry.entry_id)

    def _maybe_flag(self, entry: LedgerEntry) -> None:
        if self._rng.random() >= self._discrepancy_rate:
            return
        self._discrepancies.flag(
            DiscrepancyKind.UNACCOUNTED_FEE,
            entry.entry_id,
            self._rng.randint(10, 59),
            details=f"Unaccounted fee related to transaction {entry.entry_id}",
        )
