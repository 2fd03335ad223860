"""Shared type aliases and constants used across the domain."""
from __future__ import annotations

from decimal import Decimal
from typing import TypeAlias

EntryId: TypeAlias = str
SubjectId: TypeAlias = str     # business record, e.g. a ticket id
ActorId: TypeAlias = str       # agent or operator responsible
HexDigest: TypeAlias = str
DiscrepancyId: TypeAlias = str

# Every amount in the ledger carries exactly two fractional digits.
CENTS = Decimal("0.01")
