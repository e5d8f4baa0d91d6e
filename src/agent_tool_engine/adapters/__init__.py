"""
HTTP API adapters.

Adapters are declarative JSON bundles of HTTP-backed tools that can be
installed and removed at runtime.
"""

from agent_tool_engine.adapters.engine import AdapterEngine, InstalledAdapter
from agent_tool_engine.adapters.models import (
    AdapterConfig,
    AdapterInfo,
    AdapterRequest,
    AdapterResponseSpec,
    AdapterToolConfig,
)
from agent_tool_engine.adapters.store import AdapterStore
from agent_tool_engine.adapters.template import TemplateContext, extract_by_path, resolve_template

__all__ = [
    "AdapterConfig",
    "AdapterEngine",
    "AdapterInfo",
    "AdapterRequest",
    "AdapterResponseSpec",
    "AdapterStore",
    "AdapterToolConfig",
    "InstalledAdapter",
    "TemplateContext",
    "extract_by_path",
    "resolve_template",
]
