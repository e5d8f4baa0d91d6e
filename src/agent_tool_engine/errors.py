"""Exception types raised by the tool engine."""

from __future__ import annotations


class EngineError(Exception):
    """Base class for all tool engine errors."""

    pass


class ProviderError(EngineError):
    """The model provider failed (non-2xx response or network failure)."""

    pass


class MissingAPIKeyError(EngineError):
    """No API key is configured for the model provider."""

    pass


class AgentCancelledError(EngineError):
    """Raised inside the agent loop when the cancellation token is set."""

    pass


class AdapterError(EngineError):
    """Base class for adapter lifecycle errors."""

    pass


class AdapterNotFoundError(AdapterError):
    """The adapter config does not exist or is empty."""

    pass


class AdapterConfigError(AdapterError):
    """The adapter config could not be parsed or is missing required fields."""

    pass


class BlockedURLError(EngineError):
    """The HTTP primitive refused to contact a local or private address."""

    pass
