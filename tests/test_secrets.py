"""Tests for secret stores."""

from __future__ import annotations

import json
import stat
from pathlib import Path

from agent_tool_engine.secrets import InMemorySecretStore, JsonFileSecretStore


class TestInMemorySecretStore:
    def test_set_get_delete_list(self) -> None:
        store = InMemorySecretStore({"B": "2"})
        store.set("A", "1")

        assert store.get("A") == "1"
        assert store.list_keys() == ["A", "B"]

        store.delete("A")
        store.delete("never-set")
        assert store.get("A") is None
        assert store.list_keys() == ["B"]


class TestJsonFileSecretStore:
    def test_persists_across_instances(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "secrets.json"
        JsonFileSecretStore(path).set("CG_KEY", "abc")

        reopened = JsonFileSecretStore(path)
        assert reopened.get("CG_KEY") == "abc"
        assert json.loads(path.read_text()) == {"CG_KEY": "abc"}

    def test_file_is_private(self, tmp_path: Path) -> None:
        path = tmp_path / "secrets.json"
        JsonFileSecretStore(path).set("K", "v")
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        store = JsonFileSecretStore(tmp_path / "none.json")
        assert store.list_keys() == []
        assert store.get("K") is None

    def test_corrupt_file_is_treated_as_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "secrets.json"
        path.write_text("{corrupt")

        store = JsonFileSecretStore(path)
        assert store.list_keys() == []

        store.set("K", "v")
        assert json.loads(path.read_text()) == {"K": "v"}

    def test_delete(self, tmp_path: Path) -> None:
        path = tmp_path / "secrets.json"
        store = JsonFileSecretStore(path)
        store.set("A", "1")
        store.set("B", "2")
        store.delete("A")

        assert JsonFileSecretStore(path).list_keys() == ["B"]
