"""Closed set of ledger entry kinds."""
from __future__ import annotations

from enum import Enum


class EntryKind(Enum):
    SALE = "Sale"
    FEE = "Fee"
    REFUND = "Refund"
    RECONCILIATION = "Reconciliation"

    @classmethod
    def parse(cls, value: str | EntryKind) -> EntryKind:
        """Accept a member, its wire value ("Sale") or its name ("SALE")."""
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for kind in cls:
            if text == kind.value or text.upper() == kind.name:
                return kind
        raise ValueError(f"Unknown entry kind: {value!r}")

    def is_outflow(self) -> bool:
        """Refunds move money back to the customer."""
        return self is EntryKind.REFUND
