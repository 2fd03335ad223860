"""Generate ticket-sale events for demos and load.

Traffic pattern:
  - a pool of ticketing agents (AGT-1001 ...) picked uniformly
  - each tick sells one ticket priced 200-999 whole units
  - with probability fee_rate the sale is followed by a 5% service fee

The fee is computed in Decimal and quantized to cents, so what gets
hashed is the same on every platform. The generator is seeded for
reproducible runs; ticket ids come from a counter, not the clock.
"""
from __future__ import annotations

import random
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from auditsys_lite.domain.events import SourceEvent
from auditsys_lite.domain.kinds import EntryKind
from auditsys_lite.domain.types import CENTS

DEFAULT_ACTORS = tuple(f"AGT-{1001 + i}" for i in range(5))

FEE_RATE = Decimal("0.05")


def service_fee(price: Decimal) -> Decimal:
    """5% of the price, rounded half-up to the cent."""
    return (price * FEE_RATE).quantize(CENTS, rounding=ROUND_HALF_UP)


class SaleEventGenerator:
    """Seeded source of Sale (and occasional Fee) events."""

    __slots__ = ("_rng", "_actors", "_fee_rate", "_next_ticket")

    def __init__(
        self,
        actors: Sequence[str] = DEFAULT_ACTORS,
        seed: int = 42,
        fee_rate: float = 0.2,
        first_ticket: int = 7000,
    ) -> None:
        if not actors:
            raise ValueError("actors must not be empty")
        if not 0.0 <= fee_rate <= 1.0:
            raise ValueError(f"fee_rate must be within [0, 1], got {fee_rate}")
        self._rng = random.Random(seed)
        self._actors = tuple(actors)
        self._fee_rate = fee_rate
        self._next_ticket = first_ticket

    def next_sale(self) -> list[SourceEvent]:
        """One ticket sale, possibly followed by its service fee."""
        ticket_id = f"TKT-{self._next_ticket}"
        self._next_ticket += 1
        actor = self._rng.choice(self._actors)
        price = Decimal(self._rng.randint(200, 999)).quantize(CENTS)

        events = [SourceEvent.create(EntryKind.SALE, price, ticket_id, actor)]
        if self._rng.random() < self._fee_rate:
            events.append(
                SourceEvent.create(EntryKind.FEE, service_fee(price), ticket_id, actor)
            )
        return events

    def events(self, sales: int) -> list[SourceEvent]:
        """Events for the given number of sales, in order."""
        out: list[SourceEvent] = []
        for _ in range(sales):
            out.extend(self.next_sale())
        return out
