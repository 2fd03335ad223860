"""SQLite-backed ledger store: an append-only table, one row per entry.

Schema:
    ledger_entry(entry_id PK, seq UNIQUE, kind, amount, created_at,
                 subject_id, actor_id, hash, previous_hash,
                 fraud_score, fraud_reason)
    index on subject_id for cross-referencing discrepancies

Amounts are stored as fixed-point TEXT and timestamps as canonical TEXT,
exactly the strings that go into the hash. Reading an entry back never
passes an amount through a float, so verification of a reloaded ledger
cannot fail from re-serialization drift.

The store is still a dumb container: append() inserts whatever it is
given. There is no UPDATE path other than annotate() (unhashed metadata)
and replace_at() (tamper simulation).
"""
from __future__ import annotations

import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from decimal import Decimal
from pathlib import Path

from auditsys_lite.domain.kinds import EntryKind
from auditsys_lite.domain.ledger_entry import (
    LedgerEntry,
    format_amount,
    format_timestamp,
    parse_timestamp,
)
from auditsys_lite.domain.types import EntryId, SubjectId
from auditsys_lite.store.base import LedgerStoreBase

_SCHEMA = """
CREATE TABLE IF NOT EXISTS ledger_entry (
    entry_id      TEXT PRIMARY KEY,
    seq           INTEGER NOT NULL UNIQUE,
    kind          TEXT NOT NULL,
    amount        TEXT NOT NULL,
    created_at    TEXT NOT NULL,
    subject_id    TEXT NOT NULL,
    actor_id      TEXT NOT NULL,
    hash          TEXT NOT NULL,
    previous_hash TEXT NOT NULL,
    fraud_score   INTEGER,
    fraud_reason  TEXT
);
CREATE INDEX IF NOT EXISTS idx_ledger_entry_subject ON ledger_entry(subject_id);
"""

_COLUMNS = (
    "entry_id, kind, amount, created_at, subject_id, actor_id, "
    "hash, previous_hash, fraud_score, fraud_reason"
)


def _row_to_entry(row: tuple) -> LedgerEntry:
    return LedgerEntry(
        entry_id=row[0],
        kind=EntryKind(row[1]),
        amount=Decimal(row[2]),
        created_at=parse_timestamp(row[3]),
        subject_id=row[4],
        actor_id=row[5],
        hash=row[6],
        previous_hash=row[7],
        fraud_score=row[8],
        fraud_reason=row[9],
    )


def _entry_values(entry: LedgerEntry) -> tuple:
    return (
        entry.entry_id,
        entry.kind.value,
        format_amount(entry.amount),
        format_timestamp(entry.created_at),
        entry.subject_id,
        entry.actor_id,
        entry.hash,
        entry.previous_hash,
        entry.fraud_score,
        entry.fraud_reason,
    )


class SqliteLedgerStore(LedgerStoreBase):
    """Ledger persisted to a SQLite file (or ":memory:").

    One connection is shared behind a lock; every write runs in its own
    transaction, so a reader never observes a partial append.
    """

    def __init__(self, path: str | Path = ":memory:", read_only: bool = False) -> None:
        self._path = str(path)
        self._read_only = read_only
        if read_only:
            # mode=ro never creates the file; missing files fail to open
            uri = f"{Path(self._path).resolve().as_uri()}?mode=ro"
            self._conn = sqlite3.connect(uri, uri=True, check_same_thread=False)
        else:
            if self._path != ":memory:":
                Path(self._path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self._path, check_same_thread=False)
        self._conn.execute("PRAGMA busy_timeout = 5000")
        if not read_only:
            self._conn.executescript(_SCHEMA)
            self._conn.commit()
        self._lock = threading.Lock()

    @property
    def path(self) -> str:
        return self._path

    @property
    def read_only(self) -> bool:
        return self._read_only

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> SqliteLedgerStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @contextmanager
    def _write(self) -> Iterator[sqlite3.Cursor]:
        """Hold the lock and commit on success, roll back on failure."""
        with self._lock:
            cursor = self._conn.cursor()
            try:
                yield cursor
                self._conn.commit()
            except Exception:
                self._conn.rollback()
                raise

    def _read(self, sql: str, params: tuple = ()) -> list[tuple]:
        with self._lock:
            return self._conn.execute(sql, params).fetchall()

    def append(self, entry: LedgerEntry) -> None:
        with self._write() as cur:
            cur.execute("SELECT COALESCE(MAX(seq), -1) + 1 FROM ledger_entry")
            seq = cur.fetchone()[0]
            try:
                cur.execute(
                    f"INSERT INTO ledger_entry (seq, {_COLUMNS}) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (seq, *_entry_values(entry)),
                )
            except sqlite3.IntegrityError as exc:
                raise ValueError(f"Duplicate entry id: {entry.entry_id}") from exc

    def all_oldest_first(self) -> list[LedgerEntry]:
        rows = self._read(f"SELECT {_COLUMNS} FROM ledger_entry ORDER BY seq")
        return [_row_to_entry(r) for r in rows]

    def replace_at(self, index: int, entry: LedgerEntry) -> None:
        with self._write() as cur:
            cur.execute(
                "SELECT seq FROM ledger_entry ORDER BY seq LIMIT 1 OFFSET ?",
                (index,),
            )
            row = cur.fetchone() if index >= 0 else None
            if row is None:
                cur.execute("SELECT COUNT(*) FROM ledger_entry")
                total = cur.fetchone()[0]
                raise IndexError(
                    f"Index {index} out of range (ledger has {total} entries)"
                )
            cur.execute("DELETE FROM ledger_entry WHERE seq = ?", (row[0],))
            cur.execute(
                f"INSERT INTO ledger_entry (seq, {_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (row[0], *_entry_values(entry)),
            )

    def head(self) -> LedgerEntry | None:
        rows = self._read(
            f"SELECT {_COLUMNS} FROM ledger_entry ORDER BY seq DESC LIMIT 1"
        )
        return _row_to_entry(rows[0]) if rows else None

    def get(self, entry_id: EntryId) -> LedgerEntry:
        rows = self._read(
            f"SELECT {_COLUMNS} FROM ledger_entry WHERE entry_id = ?", (entry_id,)
        )
        if not rows:
            raise KeyError(entry_id)
        return _row_to_entry(rows[0])

    def query_by_subject(self, subject_id: SubjectId) -> list[LedgerEntry]:
        rows = self._read(
            f"SELECT {_COLUMNS} FROM ledger_entry WHERE subject_id = ? ORDER BY seq",
            (subject_id,),
        )
        return [_row_to_entry(r) for r in rows]

    def annotate(
        self,
        entry_id: EntryId,
        fraud_score: int | None,
        fraud_reason: str | None = None,
    ) -> LedgerEntry:
        with self._write() as cur:
            cur.execute(
                "UPDATE ledger_entry SET fraud_score = ?, fraud_reason = ? "
                "WHERE entry_id = ?",
                (fraud_score, fraud_reason, entry_id),
            )
            if cur.rowcount == 0:
                raise KeyError(entry_id)
        return self.get(entry_id)

    def count(self) -> int:
        return self._read("SELECT COUNT(*) FROM ledger_entry")[0][0]
