"""
Core data models for messages, tool calls and tool results.

Message content follows the OpenAI chat format: either a plain string, a list
of content parts, or ``None`` (assistant messages that only carry tool calls).

Content parts:
    {"type": "text", "text": "..."}
    {"type": "image_url", "image_url": {"url": "data:image/png;base64,..."}}
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Literal

Role = Literal["user", "assistant", "system", "tool"]
ContentPart = dict[str, Any]
MessageContent = str | list[ContentPart] | None

# Reserved prefix a tool executor may return to request a task switch.
SWITCH_TASK_PREFIX = "__switch_task__:"


@dataclass(frozen=True)
class FunctionCall:
    """Function name plus its JSON-encoded (possibly malformed) arguments."""

    name: str
    arguments: str = ""


@dataclass(frozen=True)
class ToolCall:
    """A model-issued request to invoke a named tool."""

    id: str
    function: FunctionCall
    type: str = "function"

    @property
    def name(self) -> str:
        return self.function.name

    def parse_arguments(self) -> dict[str, Any]:
        """Best-effort argument parsing; anything but a JSON object gives ``{}``."""
        return parse_arguments(self.function.arguments)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "function": {
                "name": self.function.name,
                "arguments": self.function.arguments,
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ToolCall:
        fn = data.get("function") or {}
        return cls(
            id=data.get("id", ""),
            function=FunctionCall(
                name=fn.get("name", ""),
                arguments=fn.get("arguments", "") or "",
            ),
            type=data.get("type", "function"),
        )


@dataclass
class Message:
    """A message in the conversation history."""

    role: Role
    content: MessageContent = None
    tool_calls: list[ToolCall] = field(default_factory=list)
    tool_call_id: str | None = None

    @classmethod
    def user(cls, content: MessageContent) -> Message:
        return cls(role="user", content=content)

    @classmethod
    def assistant(
        cls,
        content: MessageContent,
        tool_calls: list[ToolCall] | None = None,
    ) -> Message:
        return cls(role="assistant", content=content, tool_calls=list(tool_calls or []))

    @classmethod
    def tool(cls, tool_call_id: str, content: str) -> Message:
        return cls(role="tool", content=content, tool_call_id=tool_call_id)

    @property
    def text(self) -> str:
        """Plain-text view of the content (image parts are dropped)."""
        return content_text(self.content)


@dataclass
class ToolDefinition:
    """Static description of a callable capability for function calling."""

    name: str
    description: str
    parameters: dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )

    def to_openai(self) -> dict[str, Any]:
        """Tool definition in OpenAI function calling format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


ToolStatus = Literal["running", "completed", "error"]


@dataclass
class ToolExecution:
    """UI-facing record of one tool execution. Observation only."""

    id: str
    name: str
    status: ToolStatus = "running"
    args: dict[str, Any] = field(default_factory=dict)
    result: str | None = None
    error: str | None = None


ToolResultKind = Literal["ok", "switch_task", "error"]


@dataclass(frozen=True)
class ToolResult:
    """
    Outcome of a tool execution.

    ``content`` is always a string that can be appended verbatim as the
    ``tool`` message for the call. ``target`` is only set for
    ``switch_task`` results.
    """

    kind: ToolResultKind
    content: str
    target: str | None = None

    @classmethod
    def ok(cls, text: str) -> ToolResult:
        return cls(kind="ok", content=text)

    @classmethod
    def error(cls, message: str) -> ToolResult:
        return cls(kind="error", content=json.dumps({"error": message}, ensure_ascii=False))

    @classmethod
    def switch_task(cls, target: str) -> ToolResult:
        marker = {"success": True, "action": "switch_task", "target": target}
        return cls(kind="switch_task", content=json.dumps(marker), target=target)

    @classmethod
    def from_output(cls, output: Any) -> ToolResult:
        """Normalise an executor's return value."""
        if isinstance(output, ToolResult):
            return output
        if not isinstance(output, str):
            output = json.dumps(output, ensure_ascii=False, default=str)
        if output.startswith(SWITCH_TASK_PREFIX):
            return cls.switch_task(output[len(SWITCH_TASK_PREFIX):])
        return cls.ok(output)

    @property
    def is_error(self) -> bool:
        return self.kind == "error"

    @property
    def is_switch(self) -> bool:
        return self.kind == "switch_task"


def parse_arguments(raw: str | None) -> dict[str, Any]:
    """Parse tool-call arguments, defaulting to ``{}`` when malformed."""
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except (ValueError, TypeError, RecursionError):
        return {}
    return value if isinstance(value, dict) else {}


def content_text(content: MessageContent) -> str:
    """Concatenate the text parts of a message content, newline-joined."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    return "\n".join(
        part.get("text", "") for part in content if part.get("type") == "text"
    )
