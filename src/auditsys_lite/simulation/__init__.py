"""Sale event simulation: a seeded generator and an asyncio ticker."""
from auditsys_lite.simulation.generator import (
    DEFAULT_ACTORS,
    SaleEventGenerator,
    service_fee,
)
from auditsys_lite.simulation.ticker import SaleTicker

__all__ = [
    "DEFAULT_ACTORS",
    "SaleEventGenerator",
    "SaleTicker",
    "service_fee",
]
