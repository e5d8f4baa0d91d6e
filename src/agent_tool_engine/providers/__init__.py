"""
Chat providers.

Providers stream chat completions as typed chunks for the agent loop.
"""

from agent_tool_engine.config import ModelConfig
from agent_tool_engine.providers.base import ChatProvider
from agent_tool_engine.providers.openai_compatible import OpenAICompatibleProvider

__all__ = ["ChatProvider", "OpenAICompatibleProvider", "create_provider"]


def create_provider(config: ModelConfig) -> ChatProvider:
    """Create the provider for a model config."""
    return OpenAICompatibleProvider(config)
