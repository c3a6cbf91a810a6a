"""Tests for the session store and freshness restoration."""

import json
from pathlib import Path

import pytest

from pulsegate.heartbeat.freshness import FreshnessSnapshot, restore_heartbeat_updated_at
from pulsegate.model.session import SessionEntry
from pulsegate.stores.session import (
    load_session_store,
    record_session_activity,
    resolve_store_path,
    save_session_store,
)


def write_store(path: Path, data: dict) -> None:
    path.write_text(json.dumps(data), encoding="utf-8")


class TestSessionEntry:
    """Test SessionEntry serialization."""

    def test_to_dict_camel_case(self) -> None:
        entry = SessionEntry(session_key="main", last_channel="telegram", last_to="u1", updated_at=1000)

        assert entry.to_dict() == {"lastChannel": "telegram", "lastTo": "u1", "updatedAt": 1000}

    def test_unknown_fields_preserved(self) -> None:
        entry = SessionEntry.from_dict("main", {"updatedAt": 5, "thinkingLevel": "high"})

        assert entry.extra == {"thinkingLevel": "high"}
        assert entry.to_dict() == {"thinkingLevel": "high", "updatedAt": 5}

    def test_invalid_updated_at_dropped(self) -> None:
        entry = SessionEntry.from_dict("main", {"updatedAt": "yesterday"})

        assert entry.updated_at is None

    def test_numeric_last_to_becomes_string(self) -> None:
        entry = SessionEntry.from_dict("main", {"lastTo": 12345})

        assert entry.last_to == "12345"

    def test_with_updated_at_copies(self) -> None:
        entry = SessionEntry(session_key="main", updated_at=1, extra={"a": 1})

        copy = entry.with_updated_at(2)

        assert copy.updated_at == 2
        assert entry.updated_at == 1
        assert copy.extra is not entry.extra


class TestSessionStore:
    """Test load/save of the JSON store."""

    def test_missing_file(self, tmp_path: Path) -> None:
        assert load_session_store(tmp_path / "sessions.json") == {}

    def test_corrupt_file(self, tmp_path: Path) -> None:
        path = tmp_path / "sessions.json"
        path.write_text("{not json", encoding="utf-8")

        assert load_session_store(path) == {}

    def test_non_object_file(self, tmp_path: Path) -> None:
        path = tmp_path / "sessions.json"
        write_store(path, [1, 2, 3])

        assert load_session_store(path) == {}

    def test_malformed_entry_skipped(self, tmp_path: Path) -> None:
        path = tmp_path / "sessions.json"
        write_store(path, {"main": {"updatedAt": 1}, "broken": "nope"})

        store = load_session_store(path)

        assert list(store) == ["main"]

    def test_save_and_load(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "sessions.json"
        store = {"main": SessionEntry(session_key="main", last_channel="whatsapp", last_to="+1555", updated_at=7)}

        save_session_store(path, store)

        assert load_session_store(path) == store
        assert not path.with_suffix(".json.tmp").exists()

    def test_record_session_activity(self, tmp_path: Path) -> None:
        path = tmp_path / "sessions.json"
        write_store(path, {"main": {"lastChannel": "telegram", "lastTo": "u1", "updatedAt": 1, "note": "x"}})

        entry = record_session_activity(path, "main", "whatsapp", "+1555", now_ms=99)

        assert entry.last_channel == "whatsapp"
        assert entry.updated_at == 99
        on_disk = json.loads(path.read_text(encoding="utf-8"))
        assert on_disk["main"] == {"note": "x", "lastChannel": "whatsapp", "lastTo": "+1555", "updatedAt": 99}

    def test_resolve_store_path_default(self) -> None:
        assert resolve_store_path(None) == Path("~/.pulsegate/sessions.json").expanduser()

    def test_resolve_store_path_expands_user(self) -> None:
        assert resolve_store_path("~/x.json") == Path("~/x.json").expanduser()


class TestRestoreHeartbeatUpdatedAt:
    """Test freshness restoration."""

    @pytest.mark.asyncio
    async def test_restores_changed_timestamp(self, tmp_path: Path) -> None:
        path = tmp_path / "sessions.json"
        write_store(path, {"main": {"lastChannel": "telegram", "lastTo": "u1", "updatedAt": 2000}})

        restored = await restore_heartbeat_updated_at(path, "main", 1000)

        assert restored is True
        assert load_session_store(path)["main"].updated_at == 1000
        assert load_session_store(path)["main"].last_to == "u1"

    @pytest.mark.asyncio
    async def test_unchanged_timestamp_not_rewritten(self, tmp_path: Path) -> None:
        path = tmp_path / "sessions.json"
        write_store(path, {"main": {"updatedAt": 1000}})
        before = path.stat().st_mtime_ns

        restored = await restore_heartbeat_updated_at(path, "main", 1000)

        assert restored is False
        assert path.stat().st_mtime_ns == before

    @pytest.mark.asyncio
    async def test_missing_entry_not_created(self, tmp_path: Path) -> None:
        path = tmp_path / "sessions.json"
        write_store(path, {"other": {"updatedAt": 5}})

        restored = await restore_heartbeat_updated_at(path, "main", 1000)

        assert restored is False
        assert "main" not in load_session_store(path)

    @pytest.mark.asyncio
    async def test_none_is_noop(self, tmp_path: Path) -> None:
        path = tmp_path / "sessions.json"

        assert await restore_heartbeat_updated_at(path, "main", None) is False
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_snapshot_restore(self, tmp_path: Path) -> None:
        path = tmp_path / "sessions.json"
        entry = SessionEntry(session_key="main", last_channel="telegram", last_to="u1", updated_at=1000)
        snapshot = FreshnessSnapshot.capture(path, "main", entry)
        write_store(path, {"main": {"lastChannel": "telegram", "lastTo": "u1", "updatedAt": 3000}})

        assert await snapshot.restore() is True
        assert load_session_store(path)["main"].updated_at == 1000
