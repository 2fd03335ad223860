"""Asynchronous fraud scoring that never gates an append.

An external service (an AI model, a rules engine) assigns a 0-100 risk
score to a transaction. Entries are appended first; scoring runs
afterwards as its own task and, when it succeeds, attaches the score as
unhashed metadata and may raise a HighFraudRisk notification. A slow,
failing or absent scorer leaves the ledger exactly as correct as before.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from auditsys_lite.domain.ledger_entry import LedgerEntry
from auditsys_lite.ledger.session import LedgerSession

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FraudAssessment:
    score: int
    reason: str | None = None


class FraudScorer(Protocol):
    """External collaborator that rates a transaction's fraud risk."""

    async def score(self, entry: LedgerEntry) -> FraudAssessment: ...


class FraudScoringWorker:
    """Schedules scoring tasks for appended entries.

    Args:
        session: ledger the scores are attached to.
        scorer: the external scorer.
        timeout: seconds to wait for one score before giving up.
    """

    def __init__(
        self,
        session: LedgerSession,
        scorer: FraudScorer,
        timeout: float = 5.0,
    ) -> None:
        self._session = session
        self._scorer = scorer
        self._timeout = timeout
        self._pending: set[asyncio.Task] = set()
        self._failures = 0

    @property
    def failures(self) -> int:
        """Scoring attempts that timed out or raised."""
        return self._failures

    @property
    def pending(self) -> int:
        return len(self._pending)

    def submit(self, entry: LedgerEntry) -> asyncio.Task:
        """Start scoring in the background. Must run inside an event loop."""
        task = asyncio.ensure_future(self.score_entry(entry))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def score_entry(self, entry: LedgerEntry) -> LedgerEntry | None:
        """Score one entry and attach the result; None when scoring failed."""
        try:
            assessment = await asyncio.wait_for(
                self._scorer.score(entry), timeout=self._timeout
            )
            updated, _ = self._session.attach_fraud_score(
                entry.entry_id, assessment.score, assessment.reason
            )
        except asyncio.CancelledError:
            raise
        except Exception:
            self._failures += 1
            log.exception("Fraud scoring failed for %s", entry.entry_id)
            return None
        log.debug("Fraud score %d attached to %s", assessment.score, entry.entry_id)
        return updated

    async def drain(self) -> None:
        """Wait for every scoring task submitted so far."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
