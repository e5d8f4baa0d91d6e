"""
Markdown skills: prompt snippets that scope which tools the model sees.

A skill is a Markdown file with YAML frontmatter:

    ---
    name: market
    description: Quotes and watchlist management
    keywords: [price, quote, watchlist]
    tools: [fetch_quote, add_to_watchlist]
    ---
    When the user asks about prices, look the symbol up first...

Files under ``skills/_always`` are active on every turn; files under
``skills/on-demand`` activate when the user input contains one of their
keywords.
"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from agent_tool_engine.logging import get_logger

logger = get_logger("skills")

ALWAYS_DIR = "skills/_always"
ON_DEMAND_DIR = "skills/on-demand"

# Regex to match YAML frontmatter (the closing fence may end the file)
FRONTMATTER_PATTERN = re.compile(
    r"^---\s*\n(.*?)\n---\s*(?:\n|$)",
    re.DOTALL,
)


@dataclass
class Skill:
    """A loaded skill."""

    name: str
    description: str = ""
    keywords: list[str] = field(default_factory=list)
    tools: list[str] = field(default_factory=list)
    prompt: str = ""
    always: bool = False

    def matches(self, user_input: str) -> bool:
        if self.always:
            return True
        text = user_input.lower()
        return any(kw.lower() in text for kw in self.keywords if kw)


def _as_list(value: Any) -> list[str]:
    """Accept a YAML list or a comma-separated string (``[a, b]`` or ``a, b``)."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]
    text = str(value).strip()
    if text.startswith("[") and text.endswith("]"):
        text = text[1:-1]
    return [part.strip() for part in text.split(",") if part.strip()]


def parse_skill_markdown(filename: str, content: str) -> Skill | None:
    """
    Parse one skill file.

    Returns ``None`` when the file has no frontmatter block. The skill name
    defaults to the file stem.
    """
    match = FRONTMATTER_PATTERN.match(content.replace("\r\n", "\n"))
    if not match:
        return None

    try:
        frontmatter = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError as e:
        logger.debug("Invalid frontmatter in %s: %s", filename, e)
        frontmatter = {}
    if not isinstance(frontmatter, dict):
        frontmatter = {}

    body = content.replace("\r\n", "\n")[match.end():].strip()
    name = str(frontmatter.get("name") or "").strip() or Path(filename).stem

    return Skill(
        name=name,
        description=str(frontmatter.get("description") or ""),
        keywords=_as_list(frontmatter.get("keywords")),
        tools=_as_list(frontmatter.get("tools")),
        prompt=body,
    )


class SkillCatalog:
    """
    Cached skills of one workspace.

    Loaded lazily on first use; :meth:`invalidate` drops the cache so the
    next lookup re-reads the files (adapter installs call it).
    """

    def __init__(self, workspace: Path | str) -> None:
        self.workspace = Path(workspace)
        self._skills: list[Skill] | None = None
        self._lock = threading.Lock()

    def load(self) -> list[Skill]:
        """Read every skill file from disk and replace the cache."""
        skills = self._load_dir(self.workspace / ALWAYS_DIR, always=True)
        skills.extend(self._load_dir(self.workspace / ON_DEMAND_DIR, always=False))
        with self._lock:
            self._skills = skills
        logger.debug("Loaded %d skills from %s", len(skills), self.workspace)
        return list(skills)

    def skills(self) -> list[Skill]:
        with self._lock:
            cached = self._skills
        if cached is None:
            return self.load()
        return list(cached)

    def invalidate(self) -> None:
        with self._lock:
            self._skills = None

    def match(self, user_input: str) -> list[Skill]:
        """Always-on skills plus skills with a keyword contained in the input."""
        return [s for s in self.skills() if s.matches(user_input)]

    def active_skill_names(self, user_input: str) -> list[str]:
        return [s.name for s in self.match(user_input)]

    @staticmethod
    def _load_dir(directory: Path, always: bool) -> list[Skill]:
        if not directory.is_dir():
            return []

        skills: list[Skill] = []
        for path in sorted(directory.glob("*.md")):
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Failed to read skill %s: %s", path, e)
                continue
            skill = parse_skill_markdown(path.name, content)
            if skill is None:
                logger.debug("Skipping %s: no frontmatter", path)
                continue
            skill.always = always
            skills.append(skill)
        return skills
