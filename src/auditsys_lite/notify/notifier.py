"""Anomaly notifier: flags significant or risky entries after append.

Two rules, evaluated on an entry that is already in the ledger:
    amount > transaction_threshold      -> TransactionAnomaly
    fraud_score > high_risk_cutoff      -> HighFraudRisk
A newly flagged discrepancy is always announced as Discrepancy, linked
to the discrepancy list rather than the ledger.

Notifications go to a sink and the notifier never waits for, retries or
reports delivery. A failing sink is logged and ignored: the ledger has
already been written and its correctness cannot depend on who listens.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Protocol

from auditsys_lite.domain.discrepancy import Discrepancy, DiscrepancyStatus
from auditsys_lite.domain.ledger_entry import LedgerEntry, format_amount

log = logging.getLogger(__name__)


class NotificationKind(Enum):
    TRANSACTION_ANOMALY = "TransactionAnomaly"
    HIGH_FRAUD_RISK = "HighFraudRisk"
    DISCREPANCY = "Discrepancy"


@dataclass(frozen=True, slots=True)
class Notification:
    message: str
    kind: NotificationKind
    link: str

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "kind": self.kind.value, "link": self.link}


class NotificationSink(Protocol):
    """Anything that accepts notifications without blocking."""

    def publish(self, notification: Notification) -> None: ...


class AnomalyNotifier:
    """Evaluates appended entries against the anomaly rules.

    Args:
        sink: where notifications go (None = evaluate only).
        transaction_threshold: amounts strictly above this are anomalies.
        high_risk_cutoff: fraud scores strictly above this are high risk.
        link: where a notification about an entry points the reader.
        discrepancy_link: where a discrepancy notification points.
    """

    def __init__(
        self,
        sink: NotificationSink | None = None,
        transaction_threshold: Decimal = Decimal("1000"),
        high_risk_cutoff: int = 75,
        link: str = "/ledger",
        discrepancy_link: str = "/discrepancies",
    ) -> None:
        self._sink = sink
        self._threshold = Decimal(transaction_threshold)
        self._cutoff = high_risk_cutoff
        self._link = link
        self._discrepancy_link = discrepancy_link
        self._delivery_failures = 0

    @property
    def delivery_failures(self) -> int:
        """Sink errors swallowed so far."""
        return self._delivery_failures

    def check_amount(self, entry: LedgerEntry) -> Notification | None:
        if entry.amount <= self._threshold:
            return None
        return Notification(
            message=(
                f"Significant transaction #{entry.entry_id} for "
                f"${format_amount(entry.amount)}."
            ),
            kind=NotificationKind.TRANSACTION_ANOMALY,
            link=self._link,
        )

    def check_fraud(self, entry: LedgerEntry) -> Notification | None:
        if entry.fraud_score is None or entry.fraud_score <= self._cutoff:
            return None
        reason = f" ({entry.fraud_reason})" if entry.fraud_reason else ""
        return Notification(
            message=(
                f"High fraud risk on transaction #{entry.entry_id}: "
                f"score {entry.fraud_score}{reason}."
            ),
            kind=NotificationKind.HIGH_FRAUD_RISK,
            link=self._link,
        )

    def check_discrepancy(self, discrepancy: Discrepancy) -> Notification:
        """Every newly flagged discrepancy is announced."""
        priority = (
            "high-priority "
            if discrepancy.status is DiscrepancyStatus.ACTION_REQUIRED
            else ""
        )
        return Notification(
            message=f"New {priority}discrepancy #{discrepancy.discrepancy_id} flagged.",
            kind=NotificationKind.DISCREPANCY,
            link=self._discrepancy_link,
        )

    def evaluate(self, entry: LedgerEntry) -> list[Notification]:
        """All notifications an entry triggers, in rule order. Pure."""
        found = [self.check_amount(entry), self.check_fraud(entry)]
        return [n for n in found if n is not None]

    def notify(self, entry: LedgerEntry) -> list[Notification]:
        """Evaluate and publish. Returns what was emitted."""
        emitted = self.evaluate(entry)
        for notification in emitted:
            self.publish(notification)
        return emitted

    def publish(self, notification: Notification) -> None:
        """Hand one notification to the sink, fire-and-forget."""
        if self._sink is None:
            return
        try:
            self._sink.publish(notification)
        except Exception:
            self._delivery_failures += 1
            log.exception("Notification sink failed for %s", notification.kind.value)
