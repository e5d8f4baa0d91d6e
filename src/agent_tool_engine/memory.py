"""
Workspace memory: ``MEMORY.md`` notes and ``USER.md`` profile sections.

Memories are markdown bullet lines (``- 2026-01-31 content [tag, tag]``).
Search is a case-insensitive line filter: a line matches when it contains
any whitespace-separated word of the query.
"""

from __future__ import annotations

import re
import threading
from collections.abc import Sequence
from datetime import date
from pathlib import Path

from agent_tool_engine.logging import get_logger

logger = get_logger("memory")

MEMORY_FILE = "MEMORY.md"
USER_FILE = "USER.md"


class WorkspaceMemory:
    """Reads and writes the memory and profile files of one workspace."""

    def __init__(self, workspace: Path | str) -> None:
        self.workspace = Path(workspace).expanduser()
        self._lock = threading.Lock()

    @property
    def memory_path(self) -> Path:
        return self.workspace / MEMORY_FILE

    @property
    def profile_path(self) -> Path:
        return self.workspace / USER_FILE

    def search(self, query: str, limit: int | None = None) -> list[str]:
        """Memory lines containing any word of ``query``, in file order."""
        keywords = query.lower().split()
        if not keywords:
            return []
        try:
            content = self.memory_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to read %s: %s", self.memory_path, e)
            return []

        hits = [
            line
            for line in content.splitlines()
            if any(kw in line.lower() for kw in keywords)
        ]
        return hits[:limit] if limit is not None else hits

    def save(self, content: str, tags: Sequence[str] = (), today: date | None = None) -> str:
        """Append one memory line and return it."""
        day = (today or date.today()).isoformat()
        tag_text = f" [{', '.join(tags)}]" if tags else ""
        line = f"- {day} {content}{tag_text}"
        with self._lock:
            self.workspace.mkdir(parents=True, exist_ok=True)
            with self.memory_path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        logger.debug("Saved memory: %s", line)
        return line

    def update_profile(self, section: str, content: str) -> str:
        """
        Replace the body of ``## <section>`` in ``USER.md``.

        The section is appended when the profile does not have it yet.
        Returns the new profile text.
        """
        with self._lock:
            try:
                current = self.profile_path.read_text(encoding="utf-8")
            except FileNotFoundError:
                current = ""
            updated = replace_section(current, section, content)
            self.workspace.mkdir(parents=True, exist_ok=True)
            self.profile_path.write_text(updated, encoding="utf-8")
        logger.debug("Updated profile section %s", section)
        return updated


def replace_section(text: str, section: str, content: str) -> str:
    """Set the body of a ``## <section>`` block, appending the block if absent."""
    header = f"## {section}"
    pattern = re.compile(
        rf"^{re.escape(header)}(?=\n|\Z)(.*?)(?=\n## |\Z)",
        re.MULTILINE | re.DOTALL,
    )
    if pattern.search(text):
        return pattern.sub(lambda m: f"{header}\n{content}\n", text, count=1)
    if not text.strip():
        return f"{header}\n{content}\n"
    return f"{text.rstrip()}\n\n{header}\n{content}\n"
