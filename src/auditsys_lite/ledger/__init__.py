"""Ledger session (owned store handle + atomic append), fraud scoring and discrepancies."""
from auditsys_lite.ledger.fraud import (
    FraudAssessment,
    FraudScorer,
    FraudScoringWorker,
)
from auditsys_lite.ledger.discrepancies import DiscrepancyRegistry
from auditsys_lite.ledger.session import LedgerSession

__all__ = [
    "FraudAssessment",
    "FraudScorer",
    "FraudScoringWorker",
    "DiscrepancyRegistry",
    "LedgerSession",
]
