"""Tests for key-value stores and JSON persistence."""

import json

import pytest

from quote_a_bot.errors import PersistenceWriteError
from quote_a_bot.store import JsonFileStore, MemoryStore, read_json, save_json, write_json


class TestJsonHelpers:
    """Test JSON document helpers."""

    def test_round_trip(self, tmp_path):
        """Should write and read a document, creating parent directories."""
        path = tmp_path / "nested" / "doc.json"
        write_json(path, {"a": 1, "ñ": "sí"})
        assert read_json(path) == {"a": 1, "ñ": "sí"}
        assert not path.with_suffix(".json.tmp").exists()

    def test_missing_returns_default(self, tmp_path):
        """Should return the default for a missing file."""
        assert read_json(tmp_path / "nope.json", default={}) == {}

    def test_corrupt_returns_default(self, tmp_path):
        """Should return the default for unreadable JSON."""
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        assert read_json(path, default=[]) == []

    def test_write_failure_raises(self, tmp_path):
        """Should raise PersistenceWriteError when the target cannot be written."""
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(PersistenceWriteError):
            write_json(blocker / "doc.json", {})

    def test_save_swallows_failure(self, tmp_path):
        """Should report failure as False instead of raising."""
        blocker = tmp_path / "file"
        blocker.write_text("x")
        assert save_json(blocker / "doc.json", {}) is False


class TestMemoryStore:
    """Test the in-memory store."""

    def test_get_set_delete(self):
        """Should behave like a dict."""
        store = MemoryStore()
        store.set("a", 1)
        assert store.get("a") == 1
        assert "a" in store
        assert store.delete("a") is True
        assert store.delete("a") is False
        assert store.get("a", "missing") == "missing"

    def test_stores_falsy_values(self):
        """Should report keys holding falsy values as present."""
        store = MemoryStore()
        store.set("empty", "")
        assert "empty" in store

    def test_bounded_evicts_oldest(self):
        """Should drop the least recently written key."""
        store = MemoryStore(max_entries=2)
        store.set("a", 1)
        store.set("b", 2)
        store.set("a", 3)
        store.set("c", 4)
        assert "b" not in store
        assert dict(store.items()) == {"a": 3, "c": 4}
        assert len(store) == 2


class TestJsonFileStore:
    """Test the file-backed store."""

    def test_persists_every_mutation(self, tmp_path):
        """Should rewrite the document on set and delete."""
        path = tmp_path / "client_tiers.json"
        store = JsonFileStore(path)
        store.set("5841", "tienda")
        assert json.loads(path.read_text()) == {"5841": "tienda"}
        store.delete("5841")
        assert json.loads(path.read_text()) == {}

    def test_loads_existing(self, tmp_path):
        """Should start from the stored document."""
        path = tmp_path / "client_tiers.json"
        path.write_text(json.dumps({"5841": "instalador"}))
        assert JsonFileStore(path).get("5841") == "instalador"

    def test_non_object_ignored(self, tmp_path):
        """Should start empty when the document is not an object."""
        path = tmp_path / "client_tiers.json"
        path.write_text("[1, 2]")
        assert len(JsonFileStore(path)) == 0
