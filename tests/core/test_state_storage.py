from __future__ import annotations

import sqlite3
from typing import TYPE_CHECKING

import pytest

from core.state_storage import StateStorage
from utils.errors import PersistenceError

if TYPE_CHECKING:
    from pathlib import Path


def test_state_storage_load_missing_key(tmp_path: Path) -> None:
    with StateStorage(tmp_path / "state.db") as storage:
        assert storage.load("proxy") is None


def test_state_storage_save_and_load(tmp_path: Path) -> None:
    record = {"enabled": True, "host": "127.0.0.1", "port": 1080, "username": None}
    with StateStorage(tmp_path / "state.db") as storage:
        storage.save("proxy", record)
        assert storage.load("proxy") == record


def test_state_storage_keys_are_independent(tmp_path: Path) -> None:
    with StateStorage(tmp_path / "state.db") as storage:
        storage.save("proxy", {"enabled": False})
        storage.save("history", [{"id": "1"}])
        storage.save("history", [])
        assert storage.load("proxy") == {"enabled": False}
        assert storage.load("history") == []


def test_state_storage_persists_across_connections(tmp_path: Path) -> None:
    db_path = tmp_path / "nested" / "state.db"
    with StateStorage(db_path) as storage:
        storage.save("history", [{"id": "a", "name": "音声.mp3"}])

    with StateStorage(db_path) as storage:
        assert storage.load("history") == [{"id": "a", "name": "音声.mp3"}]


def test_state_storage_delete(tmp_path: Path) -> None:
    with StateStorage(tmp_path / "state.db") as storage:
        storage.save("proxy", {"enabled": True})
        storage.delete("proxy")
        storage.delete("proxy")
        assert storage.load("proxy") is None


def test_state_storage_rejects_empty_path() -> None:
    with pytest.raises(PersistenceError):
        StateStorage("   ")


def test_state_storage_rejects_unserialisable_value(tmp_path: Path) -> None:
    with StateStorage(tmp_path / "state.db") as storage, pytest.raises(PersistenceError):
        storage.save("proxy", {"value": object()})


def test_state_storage_reports_corrupt_record(tmp_path: Path) -> None:
    db_path = tmp_path / "state.db"
    with StateStorage(db_path) as storage:
        storage.save("history", [])
    connection = sqlite3.connect(db_path)
    with connection:
        connection.execute("UPDATE state SET payload = '{not json' WHERE key = 'history'")
    connection.close()

    with StateStorage(db_path) as storage, pytest.raises(PersistenceError):
        storage.load("history")


def test_state_storage_open_failure_is_persistence_error(tmp_path: Path) -> None:
    (tmp_path / "state.db").mkdir()

    with pytest.raises(PersistenceError):
        StateStorage(tmp_path / "state.db").open()
