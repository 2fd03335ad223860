"""Tests for the SQLite-backed ledger store."""
from __future__ import annotations

import sqlite3
from dataclasses import replace
from decimal import Decimal

import pytest

from auditsys_lite.crypto.factory import EntryFactory
from auditsys_lite.crypto.tamper import TamperSimulator
from auditsys_lite.crypto.verifier import ChainVerifier, ViolationKind
from auditsys_lite.domain.kinds import EntryKind
from auditsys_lite.store.sqlite_store import SqliteLedgerStore

from tests.conftest import StepClock, build_chain, make_event


@pytest.fixture()
def sqlite_store():
    store = SqliteLedgerStore()
    yield store
    store.close()


class TestSqliteStore:

    def test_round_trip_preserves_entries(self, sqlite_store):
        _, entries = build_chain(["100", "250.50", "0.01"], store=sqlite_store)
        assert sqlite_store.all_oldest_first() == entries
        assert sqlite_store.head() == entries[-1]
        assert sqlite_store.count() == 3
        assert len(sqlite_store) == 3

    def test_empty(self, sqlite_store):
        assert sqlite_store.head() is None
        assert sqlite_store.all_oldest_first() == []

    def test_amount_stored_as_fixed_point_text(self, sqlite_store):
        build_chain(["250.5"], store=sqlite_store)
        conn = sqlite_store._conn
        (amount,) = conn.execute("SELECT amount FROM ledger_entry").fetchone()
        assert amount == "250.50"

    def test_duplicate_id_rejected(self, sqlite_store):
        _, entries = build_chain([100], store=sqlite_store)
        with pytest.raises(ValueError, match="Duplicate"):
            sqlite_store.append(entries[0])
        assert sqlite_store.count() == 1

    def test_get_and_query_by_subject(self, sqlite_store):
        _, entries = build_chain([100, 250, 75], store=sqlite_store)
        assert sqlite_store.get(entries[2].entry_id) == entries[2]
        assert sqlite_store.query_by_subject("TKT-7001") == [entries[1]]
        with pytest.raises(KeyError):
            sqlite_store.get("TXN-missing")

    def test_annotate(self, sqlite_store):
        _, entries = build_chain([100, 250], store=sqlite_store)
        updated = sqlite_store.annotate(entries[0].entry_id, 90, "card testing")
        assert updated.fraud_score == 90
        assert updated.fraud_reason == "card testing"
        assert ChainVerifier().verify_store(sqlite_store).ok
        with pytest.raises(KeyError):
            sqlite_store.annotate("TXN-missing", 1)

    def test_replace_at_keeps_position(self, sqlite_store):
        _, entries = build_chain([100, 250, 75], store=sqlite_store)
        altered = replace(entries[1], amount=Decimal("400.00"))
        sqlite_store.replace_at(1, altered)
        stored = sqlite_store.all_oldest_first()
        assert [e.entry_id for e in stored] == [e.entry_id for e in entries]
        assert stored[1].amount == Decimal("400.00")

    @pytest.mark.parametrize("index", [-1, 3])
    def test_replace_at_out_of_range(self, sqlite_store, index):
        _, entries = build_chain([100, 250, 75], store=sqlite_store)
        with pytest.raises(IndexError):
            sqlite_store.replace_at(index, entries[0])

    def test_subject_index_exists(self, sqlite_store):
        rows = sqlite_store._conn.execute(
            "SELECT name FROM sqlite_master WHERE type = 'index'"
        ).fetchall()
        assert ("idx_ledger_entry_subject",) in rows


class TestPersistence:

    def test_reloaded_ledger_verifies(self, tmp_path):
        path = tmp_path / "ledger.db"
        with SqliteLedgerStore(path) as store:
            _, entries = build_chain([100, "250.25", 999, 1500], store=store)

        with SqliteLedgerStore(path) as reopened:
            assert reopened.all_oldest_first() == entries
            assert ChainVerifier().verify_store(reopened).ok

    def test_tamper_survives_reload(self, tmp_path):
        path = tmp_path / "ledger.db"
        with SqliteLedgerStore(path) as store:
            build_chain([100, 250, 75], store=store)
            tampered_id = TamperSimulator().tamper(store, index=1)

        with SqliteLedgerStore(path) as reopened:
            result = ChainVerifier().verify_store(reopened)
        assert not result.ok
        assert result.first_broken_entry_id == tampered_id
        assert result.violation_kind is ViolationKind.CONTENT

    def test_sub_cent_tamper_survives_reload(self, tmp_path):
        path = tmp_path / "ledger.db"
        with SqliteLedgerStore(path) as store:
            _, entries = build_chain([100, 250, 75], store=store)
            TamperSimulator().tamper(store, index=1, amount=Decimal("250.001"))

        with SqliteLedgerStore(path) as reopened:
            assert reopened.get(entries[1].entry_id).amount == Decimal("250.001")
            result = ChainVerifier().verify_store(reopened)
        assert result.first_broken_entry_id == entries[1].entry_id
        assert result.violation_kind is ViolationKind.CONTENT

    def test_direct_sql_edit_detected(self, tmp_path):
        path = tmp_path / "ledger.db"
        with SqliteLedgerStore(path) as store:
            _, entries = build_chain([100, 250, 75], store=store)

        conn = sqlite3.connect(path)
        conn.execute(
            "UPDATE ledger_entry SET subject_id = 'TKT-0000' WHERE entry_id = ?",
            (entries[2].entry_id,),
        )
        conn.commit()
        conn.close()

        with SqliteLedgerStore(path) as reopened:
            result = ChainVerifier().verify_store(reopened)
        assert result.first_broken_entry_id == entries[2].entry_id
        assert result.violation_kind is ViolationKind.CONTENT

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "ledger.db"
        with SqliteLedgerStore(path) as store:
            build_chain([100], store=store)
        assert path.exists()

    def test_kind_round_trips(self, tmp_path):
        factory = EntryFactory(clock=StepClock())
        with SqliteLedgerStore(tmp_path / "k.db") as store:
            for kind in EntryKind:
                store.append(factory.create_entry(make_event(5, kind=kind), store.head()))
            kinds = [e.kind for e in store.all_oldest_first()]
        assert kinds == list(EntryKind)


class TestReadOnly:

    def test_missing_file_not_created(self, tmp_path):
        path = tmp_path / "missing" / "ledger.db"
        with pytest.raises(sqlite3.OperationalError):
            SqliteLedgerStore(path, read_only=True)
        assert not path.parent.exists()

    def test_reads_existing_ledger(self, tmp_path):
        path = tmp_path / "ledger.db"
        with SqliteLedgerStore(path) as store:
            _, entries = build_chain([100, 250], store=store)

        with SqliteLedgerStore(path, read_only=True) as reader:
            assert reader.read_only
            assert reader.all_oldest_first() == entries
            with pytest.raises(sqlite3.OperationalError):
                reader.append(replace(entries[0], entry_id="TXN-new"))
            assert reader.count() == 2
