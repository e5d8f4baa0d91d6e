"""On-disk storage for adapter configs (``<workspace>/adapters/<id>.json``)."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from agent_tool_engine.errors import AdapterConfigError, AdapterNotFoundError

# Adapter ids become file names
_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


def validate_adapter_id(adapter_id: str) -> str:
    if not isinstance(adapter_id, str) or not _ID_PATTERN.match(adapter_id) or ".." in adapter_id:
        raise AdapterConfigError(f"invalid adapter id: {adapter_id!r}")
    return adapter_id


class AdapterStore:
    """Reads and writes adapter JSON documents in a directory."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root).expanduser()

    def path_for(self, adapter_id: str) -> Path:
        return self.root / f"{validate_adapter_id(adapter_id)}.json"

    def list_ids(self) -> list[str]:
        if not self.root.is_dir():
            return []
        return sorted(p.stem for p in self.root.glob("*.json") if p.is_file())

    def read(self, adapter_id: str) -> str:
        path = self.path_for(adapter_id)
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise AdapterNotFoundError(f"adapter {adapter_id} does not exist") from None
        except UnicodeDecodeError as e:
            raise AdapterConfigError(f"adapter {adapter_id} is not valid UTF-8: {e}") from e
        if not content.strip():
            raise AdapterNotFoundError(f"adapter {adapter_id} is empty")
        return content

    def write(self, adapter_id: str, data: dict[str, Any]) -> Path:
        path = self.path_for(adapter_id)
        self.root.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        return path

    def delete(self, adapter_id: str) -> bool:
        path = self.path_for(adapter_id)
        if not path.exists():
            return False
        path.unlink()
        return True
