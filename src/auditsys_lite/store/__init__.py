"""Ledger stores: append-only containers for sealed entries.

LedgerStoreBase defines the interface; InMemoryLedgerStore is the
reference implementation and SqliteLedgerStore persists one row per
entry. EntryFilter narrows snapshots for display.
"""
from auditsys_lite.store.base import LedgerStoreBase
from auditsys_lite.store.memory_store import InMemoryLedgerStore
from auditsys_lite.store.queries import EntryFilter
from auditsys_lite.store.sqlite_store import SqliteLedgerStore

__all__ = [
    "LedgerStoreBase",
    "InMemoryLedgerStore",
    "EntryFilter",
    "SqliteLedgerStore",
]
