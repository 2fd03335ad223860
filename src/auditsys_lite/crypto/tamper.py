"""Tamper simulator -- demo and test fixture, never part of a write path.

Edits one stored entry's amount in place without recomputing its hash,
exactly what an operator with raw write access to the ledger could do.
The next verification pass must fail at that entry with a content
violation; neighbouring entries keep their stored hashes, so nothing
else changes.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from decimal import Decimal

from auditsys_lite.store.base import LedgerStoreBase

log = logging.getLogger(__name__)

DEFAULT_DELTA = Decimal("150.75")


class TamperSimulator:
    """Mutates a stored entry's content, leaving hash and previous_hash alone."""

    def __init__(self, delta: Decimal = DEFAULT_DELTA) -> None:
        if delta == 0:
            raise ValueError("delta must be non-zero or the entry would not change")
        self._delta = delta

    def tamper(
        self,
        store: LedgerStoreBase,
        index: int | None = None,
        amount: Decimal | None = None,
    ) -> str:
        """Alter one entry's amount and return its id.

        Args:
            store: ledger to corrupt.
            index: oldest-first position; defaults to the middle entry.
            amount: replacement amount; defaults to the stored amount plus
                the simulator's delta.

        Raises ValueError on an empty store or when amount equals the
        stored amount (no visible change). Raises IndexError for a bad index.
        """
        entries = store.all_oldest_first()
        if not entries:
            raise ValueError("Not enough data to tamper with: ledger is empty")
        if index is None:
            index = len(entries) // 2
        if index < 0 or index >= len(entries):
            raise IndexError(
                f"Index {index} out of range (ledger has {len(entries)} entries)"
            )

        original = entries[index]
        new_amount = amount if amount is not None else original.amount + self._delta
        if new_amount == original.amount:
            raise ValueError(
                f"Replacement amount {new_amount} equals the stored amount"
            )

        store.replace_at(index, replace(original, amount=new_amount))
        log.warning(
            "Tampered entry %s at position %d: amount %s -> %s (hash not recomputed)",
            original.entry_id, index, original.amount, new_amount,
        )
        return original.entry_id
