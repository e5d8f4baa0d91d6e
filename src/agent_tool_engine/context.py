"""System prompt assembly and skill-scoped tool selection."""
from __future__ import annotations

from pathlib import Path

from agent_tool_engine.memory import USER_FILE, WorkspaceMemory
from agent_tool_engine.models import ToolDefinition
from agent_tool_engine.skills import SkillCatalog
from agent_tool_engine.tools.registry import ToolRegistry

SOUL_FILE = "SOUL.md"
USER_PLACEHOLDER = "# User Profile"
MAX_MEMORY_LINES = 10

FALLBACK_SOUL = """You are a professional market assistant and tool-using agent. You do not \
only answer questions: you call tools to fetch live data and carry out actions.

## Tool use
1. Look a symbol up before fetching its quote when the user names a company.
2. Several tools may be called in one reply to finish a compound request.
3. If a tool needs an API key that is missing, ask the user for it and store it \
with manage_api_secret.
4. To reach a new third-party API, install an adapter with manage_adapter.
5. Use switch_task when the user wants to move to another task or back to the lobby.
6. Record facts the user shares with save_memory and look past notes up with search_memory.
7. Keep the investor profile current with update_user_profile.

## Replies
- Quote the concrete numbers the tools returned.
- Confirm what was created or changed after a mutating tool call.
- Remind the user that investing carries risk when giving buy or sell opinions."""


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError):
        return ""


def build_system_prompt(
    workspace: Path | str,
    user_input: str,
    catalog: SkillCatalog,
    memory: WorkspaceMemory | None = None,
) -> str:
    """Build the system prompt for one turn.

    Sections, in order:
    1. ``SOUL.md`` from the workspace, or the fallback persona
    2. ``USER.md`` under a "User profile" heading, unless empty or the bare template
    3. Up to ten ``MEMORY.md`` lines matching ``user_input`` under "Related memories"
    4. Prompts of the skills matched by ``user_input`` under "Active skills"
    """
    workspace = Path(workspace)
    parts: list[str] = []

    soul = _read_text(workspace / SOUL_FILE)
    parts.append(soul or FALLBACK_SOUL)

    user = _read_text(workspace / USER_FILE)
    if user and user != USER_PLACEHOLDER:
        parts.append(f"## User profile\n{user}")

    memory = memory or WorkspaceMemory(workspace)
    memories = memory.search(user_input, limit=MAX_MEMORY_LINES)
    if memories:
        parts.append("## Related memories\n" + "\n".join(memories))

    prompts = [s.prompt for s in catalog.match(user_input) if s.prompt]
    if prompts:
        parts.append("## Active skills\n" + "\n\n".join(prompts))

    return "\n\n".join(parts)


def select_tools(registry: ToolRegistry, skill_names: list[str]) -> list[ToolDefinition]:
    """Scoped definitions when any skill is active, every definition otherwise."""
    if skill_names:
        return registry.get_definitions_for_skills(skill_names)
    return registry.get_all_definitions()
