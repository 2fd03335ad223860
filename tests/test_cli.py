"""Tests for the auditsys-lite command line."""
from __future__ import annotations

import json

import pytest

from auditsys_lite.cli import main


def _json_lines(out: str) -> list[dict]:
    return [json.loads(line) for line in out.splitlines() if line.startswith("{")]


class TestDemo:

    def test_clean_ledger_verifies(self, capsys):
        assert main(["demo", "--entries", "15"]) == 0
        result = _json_lines(capsys.readouterr().out)[-1]
        assert result == {"ok": True, "firstBrokenEntryId": None, "violationKind": None}

    def test_tamper_is_detected(self, capsys):
        assert main(["demo", "--entries", "15", "--tamper"]) == 1
        out = capsys.readouterr().out
        result = _json_lines(out)[-1]
        assert result["ok"] is False
        assert result["violationKind"] == "content"
        assert f"Tampered with {result['firstBrokenEntryId']}" in out

    def test_low_threshold_prints_anomalies(self, capsys):
        assert main(["demo", "--entries", "5", "--threshold", "1"]) == 0
        notes = [d for d in _json_lines(capsys.readouterr().out) if "kind" in d]
        assert notes
        assert all(n["kind"] == "TransactionAnomaly" for n in notes)


class TestVerify:

    def test_persisted_ledger(self, tmp_path, capsys):
        db = str(tmp_path / "ledger.db")
        assert main(["demo", "--entries", "10", "--db", db]) == 0
        capsys.readouterr()
        assert main(["verify", "--db", db, "--chunk", "3"]) == 0
        assert "Ledger integrity verified" in capsys.readouterr().out

    def test_persisted_tampered_ledger(self, tmp_path, capsys):
        db = str(tmp_path / "ledger.db")
        assert main(["demo", "--entries", "10", "--db", db, "--tamper"]) == 1
        assert main(["verify", "--db", db]) == 1
        assert "Verification failed at entry" in capsys.readouterr().out

    def test_missing_database_is_configuration_error(self, tmp_path, capsys):
        db = tmp_path / "typo" / "nope.db"
        assert main(["verify", "--db", str(db)]) == 2
        captured = capsys.readouterr()
        assert "No ledger database" in captured.err
        assert "verified" not in captured.out
        assert not db.exists()
        assert not db.parent.exists()

    def test_non_ledger_file_is_configuration_error(self, tmp_path, capsys):
        db = tmp_path / "notes.txt"
        db.write_text("not a database at all, just some text\n" * 10)
        assert main(["verify", "--db", str(db)]) == 2
        assert "Not a ledger database" in capsys.readouterr().err

    def test_verify_does_not_write(self, tmp_path, capsys):
        db = tmp_path / "ledger.db"
        assert main(["demo", "--entries", "4", "--db", str(db)]) == 0
        before = db.read_bytes()
        assert main(["verify", "--db", str(db)]) == 0
        assert db.read_bytes() == before

    @pytest.mark.parametrize("chunk", ["0", "-3", "many"])
    def test_chunk_must_be_positive(self, tmp_path, chunk):
        db = tmp_path / "ledger.db"
        assert main(["demo", "--entries", "4", "--db", str(db)]) == 0
        with pytest.raises(SystemExit) as exc_info:
            main(["verify", "--db", str(db), "--chunk", chunk])
        assert exc_info.value.code == 2


class TestSimulate:

    def test_simulate(self, capsys):
        assert main(["simulate", "--ticks", "3", "--interval", "0.001"]) == 0
        assert "Ledger integrity verified" in capsys.readouterr().out


class TestErrors:

    def test_bad_env_is_configuration_error(self, monkeypatch, capsys):
        monkeypatch.setenv("AUDITSYS_HASH_ALGORITHM", "not-a-hash")
        assert main(["demo"]) == 2
        assert "error:" in capsys.readouterr().err

    def test_negative_threshold(self, capsys):
        assert main(["demo", "--threshold", "-5"]) == 2

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()

    def test_verify_requires_db(self):
        with pytest.raises(SystemExit):
            main(["verify"])
