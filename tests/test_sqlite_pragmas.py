from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from launchpad.runtime.sqlite_db import SqliteCollectionStore, SqliteDB


def _pragma(con: sqlite3.Connection, name: str) -> int | str:
    row = con.execute(f"PRAGMA {name};").fetchone()
    if row is None:
        raise AssertionError(f"missing pragma: {name}")
    return row[0]


def test_sqlite_operational_pragmas_are_applied(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LAUNCHPAD_MODE", "prod")
    monkeypatch.delenv("LAUNCHPAD_SQLITE_SYNCHRONOUS", raising=False)
    monkeypatch.setenv("LAUNCHPAD_SQLITE_BUSY_TIMEOUT_MS", "1234")

    db = SqliteDB(path=str(tmp_path / "collection.db"))
    db.init_schema()

    with db.connection() as con:
        assert str(_pragma(con, "journal_mode")).lower() == "wal"
        # FULL is the prod default.
        assert int(_pragma(con, "synchronous")) == 2
        assert int(_pragma(con, "foreign_keys")) == 1
        # MEMORY
        assert int(_pragma(con, "temp_store")) == 2
        assert int(_pragma(con, "busy_timeout")) == 1234


def test_dev_mode_defaults_to_normal_sync(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LAUNCHPAD_MODE", "dev")
    monkeypatch.delenv("LAUNCHPAD_SQLITE_SYNCHRONOUS", raising=False)

    db = SqliteDB(path=str(tmp_path / "collection.db"))
    with db.connection() as con:
        assert int(_pragma(con, "synchronous")) == 1


def test_schema_version_mismatch_refuses_to_start(tmp_path: Path) -> None:
    db = SqliteDB(path=str(tmp_path / "collection.db"))
    db.init_schema()
    with db.write_tx() as con:
        con.execute("UPDATE meta SET value='99' WHERE key='schema_version';")

    with pytest.raises(RuntimeError, match="schema_version mismatch"):
        db.init_schema()


def test_commit_writes_snapshot_and_events_together(tmp_path: Path) -> None:
    store = SqliteCollectionStore(db=SqliteDB(path=str(tmp_path / "collection.db")))
    assert store.exists() is False

    st = {"params": {"collection_id": "c"}, "tx_count": 1}
    store.commit(
        st,
        tx_type="STAKE",
        events=[{"event": "Staked", "token_id": 1}, {"event": "Staked", "token_id": 2}],
    )
    store.commit(
        {"params": {"collection_id": "c"}, "tx_count": 2},
        tx_type="UNSTAKE",
        events=[{"event": "Unstaked", "token_id": 1, "reward": 0}],
    )

    assert store.read()["tx_count"] == 2

    all_events = store.read_events()
    assert [e["seq"] for e in all_events] == [1, 2, 3]
    assert all_events[2] == {"seq": 3, "tx_seq": 2, "tx_type": "UNSTAKE", "event": "Unstaked", "token_id": 1, "reward": 0}

    staked = store.read_events(event="Staked")
    assert [e["token_id"] for e in staked] == [1, 2]
    assert [e["seq"] for e in store.read_events(after_seq=1, limit=1)] == [2]


def test_non_json_state_is_refused(tmp_path: Path) -> None:
    store = SqliteCollectionStore(db=SqliteDB(path=str(tmp_path / "collection.db")))
    with pytest.raises(TypeError):
        store.write({"params": {}, "bad": object()})
    assert store.exists() is False
