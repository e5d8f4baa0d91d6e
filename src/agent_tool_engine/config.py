"""
Configuration models for the tool engine.

Configuration can be loaded from YAML files, plain dictionaries or the
environment (``.env`` files are honoured), or constructed programmatically.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o-mini"


def _env_flag(name: str, default: bool = False) -> bool:
    val = os.environ.get(name)
    if val is None:
        return default
    return val.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ModelConfig:
    """Connection settings for an OpenAI-compatible chat endpoint."""

    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    supports_vision: bool = False
    max_tokens: int | None = None
    timeout_seconds: float = 300.0

    @classmethod
    def from_env(cls, **overrides: Any) -> ModelConfig:
        """Create config from environment variables (and a ``.env`` file)."""
        load_dotenv()
        values: dict[str, Any] = {
            "api_key": os.environ.get("OPENAI_API_KEY", ""),
            "base_url": os.environ.get("OPENAI_BASE_URL") or DEFAULT_BASE_URL,
            "model": os.environ.get("AGENT_MODEL") or DEFAULT_MODEL,
            "supports_vision": _env_flag("AGENT_SUPPORTS_VISION"),
        }
        values.update(overrides)
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        # api_key is intentionally not serialised
        return {
            "base_url": self.base_url,
            "model": self.model,
            "supports_vision": self.supports_vision,
            "max_tokens": self.max_tokens,
            "timeout_seconds": self.timeout_seconds,
        }


@dataclass
class EngineConfig:
    """
    Main configuration for the tool engine.

    Example YAML:
        workspace: ~/.agent-tools
        secrets_path: ~/.agent-tools/adapter-secrets.json
        max_tool_rounds: 10
        temperature: 0.7
        adapter_timeout_seconds: 30
        model:
          base_url: https://api.deepseek.com/v1
          model: deepseek-chat
          supports_vision: false
    """

    workspace: Path = field(default_factory=lambda: Path.home() / ".agent-tools")
    secrets_path: Path | None = None  # Defaults to <workspace>/adapter-secrets.json
    max_tool_rounds: int = 10
    temperature: float = 0.7
    adapter_timeout_seconds: float = 30.0
    model: ModelConfig = field(default_factory=ModelConfig)

    @property
    def resolved_secrets_path(self) -> Path:
        return self.secrets_path or self.workspace / "adapter-secrets.json"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EngineConfig:
        """Create config from a dictionary."""
        model_data = data.get("model") or {}
        model = ModelConfig.from_env(**_model_overrides(model_data))

        kwargs: dict[str, Any] = {"model": model}
        if data.get("workspace"):
            kwargs["workspace"] = Path(data["workspace"]).expanduser()
        if data.get("secrets_path"):
            kwargs["secrets_path"] = Path(data["secrets_path"]).expanduser()
        if "max_tool_rounds" in data:
            kwargs["max_tool_rounds"] = int(data["max_tool_rounds"])
        if "temperature" in data:
            kwargs["temperature"] = float(data["temperature"])
        if "adapter_timeout_seconds" in data:
            kwargs["adapter_timeout_seconds"] = float(data["adapter_timeout_seconds"])
        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: Path) -> EngineConfig:
        """Load config from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def from_yaml_string(cls, content: str) -> EngineConfig:
        """Load config from a YAML string."""
        data = yaml.safe_load(content)
        return cls.from_dict(data or {})

    def to_dict(self) -> dict[str, Any]:
        """Convert config to a dictionary."""
        return {
            "workspace": str(self.workspace),
            "secrets_path": str(self.secrets_path) if self.secrets_path else None,
            "max_tool_rounds": self.max_tool_rounds,
            "temperature": self.temperature,
            "adapter_timeout_seconds": self.adapter_timeout_seconds,
            "model": self.model.to_dict(),
        }


def _model_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Keep only the model keys explicitly set in a config file."""
    allowed = ("api_key", "base_url", "model", "supports_vision", "max_tokens", "timeout_seconds")
    return {k: data[k] for k in allowed if data.get(k) is not None}
