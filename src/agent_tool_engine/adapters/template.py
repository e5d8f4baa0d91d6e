"""
Template resolution for adapter requests.

Supported tokens inside any string of a request template:

- ``{{args.<name>}}``: tool-call argument
- ``{{secrets.<name>}}``: secret from the secret store
- ``{{base_url}}``: the adapter's base URL

Any other ``{{...}}`` token resolves to an empty string. Lists and dicts are
resolved element-wise; other values pass through unchanged.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any

TOKEN_PATTERN = re.compile(r"\{\{(\w+(?:\.\w+)*)\}\}")


@dataclass
class TemplateContext:
    args: dict[str, Any] = field(default_factory=dict)
    secrets: dict[str, str] = field(default_factory=dict)
    base_url: str = ""


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def _resolve_token(path: str, context: TemplateContext) -> str:
    parts = path.split(".")
    if len(parts) == 2 and parts[0] == "args":
        return _stringify(context.args.get(parts[1]))
    if len(parts) == 2 and parts[0] == "secrets":
        return context.secrets.get(parts[1], "")
    if path == "base_url":
        return context.base_url
    return ""


def resolve_template(template: Any, context: TemplateContext) -> Any:
    """Recursively substitute template tokens."""
    if isinstance(template, str):
        return TOKEN_PATTERN.sub(lambda m: _resolve_token(m.group(1), context), template)
    if isinstance(template, list):
        return [resolve_template(item, context) for item in template]
    if isinstance(template, dict):
        return {key: resolve_template(value, context) for key, value in template.items()}
    return template


def extract_by_path(data: Any, path: str) -> Any:
    """
    Descend into ``data`` by dot-separated keys.

    Numeric segments index into lists. A missing key at any level yields
    ``None``.
    """
    current = data
    for part in path.split("."):
        if current is None:
            return None
        if isinstance(current, dict):
            current = current.get(part)
        elif isinstance(current, list) and part.isdigit():
            index = int(part)
            current = current[index] if index < len(current) else None
        else:
            return None
    return current
