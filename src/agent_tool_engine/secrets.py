"""
Secret storage for adapter credentials.

Values are only ever returned by ``get``; ``list_keys`` exposes names.
"""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Protocol

from agent_tool_engine.logging import get_logger

logger = get_logger("secrets")


class SecretStore(Protocol):
    """Key/value store for API secrets."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def list_keys(self) -> list[str]: ...


class InMemorySecretStore:
    """Process-local secret store."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def list_keys(self) -> list[str]:
        return sorted(self._data)


class JsonFileSecretStore:
    """
    Secret store persisted to a JSON file, saved on every change.

    The file is written with ``0600`` permissions. A corrupt file is logged
    and treated as empty; it is overwritten on the next ``set``.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path).expanduser()
        self._data: dict[str, str] | None = None
        self._lock = threading.Lock()

    def _load(self) -> dict[str, str]:
        if self._data is None:
            self._data = {}
            if self.path.exists():
                try:
                    raw = json.loads(self.path.read_text(encoding="utf-8") or "{}")
                except (OSError, json.JSONDecodeError) as e:
                    logger.warning("Could not read secret store %s: %s", self.path, e)
                    raw = {}
                if isinstance(raw, dict):
                    self._data = {str(k): str(v) for k, v in raw.items() if v is not None}
        return self._data

    def _save(self) -> None:
        data = self._load()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        os.chmod(tmp, 0o600)
        tmp.replace(self.path)

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._load()[key] = value
            self._save()

    def delete(self, key: str) -> None:
        with self._lock:
            if self._load().pop(key, None) is not None:
                self._save()

    def list_keys(self) -> list[str]:
        with self._lock:
            return sorted(self._load())
