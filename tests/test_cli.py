"""Tests for CLI commands."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from agent_tool_engine.cli import main
from agent_tool_engine.config import EngineConfig, ModelConfig
from agent_tool_engine.host import AgentHost
from agent_tool_engine.secrets import InMemorySecretStore
from conftest import FakeHttpClient, ScriptedProvider, make_call, text_round, tool_round


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    """main() installs a stderr handler; drop it after each test."""
    logger = logging.getLogger("agent_tool_engine")
    level = logger.level
    yield
    logger.handlers.clear()
    logger.setLevel(level)


def _run(workspace: Path, *argv: str) -> None:
    main(["-w", str(workspace), *argv])


class TestNoCommand:
    def test_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        main([])
        assert "agent-tools" in capsys.readouterr().out


class TestSecretsCommand:
    def test_set_list_delete(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        _run(tmp_path, "secrets", "set", "CG_KEY", "super-secret")
        _run(tmp_path, "secrets", "list")
        out = capsys.readouterr().out
        assert "CG_KEY" in out
        assert "super-secret" not in out

        _run(tmp_path, "secrets", "delete", "CG_KEY")
        _run(tmp_path, "secrets", "list")
        assert "Total: 0 secrets" in capsys.readouterr().out


class TestAdaptersCommand:
    def test_install_list_remove(
        self,
        tmp_path: Path,
        crypto_adapter: dict[str, Any],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        source = tmp_path / "coingecko.json"
        source.write_text(json.dumps(crypto_adapter))
        workspace = tmp_path / "ws"

        _run(workspace, "adapters", "install", str(source))
        assert (workspace / "adapters" / "coingecko.json").is_file()
        assert "Installed adapter coingecko" in capsys.readouterr().out

        _run(workspace, "adapters", "list")
        out = capsys.readouterr().out
        assert "coingecko" in out
        assert "crypto_price" in out

        _run(workspace, "adapters", "remove", "coingecko")
        assert not (workspace / "adapters" / "coingecko.json").exists()

    def test_install_invalid_file_exits(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        source = tmp_path / "bad.json"
        source.write_text("{not json")

        with pytest.raises(SystemExit) as exc:
            _run(tmp_path, "adapters", "install", str(source))
        assert exc.value.code == 1
        assert "Install failed" in capsys.readouterr().out

    def test_remove_unknown_exits(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit):
            _run(tmp_path, "adapters", "remove", "ghost")


class TestSkillsCommand:
    def test_list(self, workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
        _run(workspace, "skills", "list")
        out = capsys.readouterr().out
        assert "basics" in out
        assert "crypto" in out
        assert "Total: 2 skills" in out


class TestChatCommand:
    def test_streams_reply_and_tools(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        provider = ScriptedProvider(
            [
                tool_round(make_call("c1", "manage_api_secret", {"action": "list"})),
                text_round("No secrets ", "stored."),
            ]
        )
        host = AgentHost(
            EngineConfig(workspace=tmp_path, model=ModelConfig(api_key="k")),
            secrets=InMemorySecretStore(),
            provider=provider,
            http=FakeHttpClient(),
        )

        with patch("agent_tool_engine.cli._create_host", return_value=host):
            _run(tmp_path, "chat", "what", "secrets?")

        out = capsys.readouterr().out
        assert "manage_api_secret" in out
        assert "No secrets stored." in out
        assert "Rounds: 2" in out
        assert [m.text for m in provider.calls[0]["messages"]] == ["what secrets?"]

    def test_missing_api_key_exits(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        with pytest.raises(SystemExit) as exc:
            _run(tmp_path, "chat", "hi")
        assert exc.value.code == 1
        assert "API key" in capsys.readouterr().out
