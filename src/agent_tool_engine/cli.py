"""
Command-line interface for the tool engine.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from agent_tool_engine.config import EngineConfig
from agent_tool_engine.errors import AdapterError, EngineError
from agent_tool_engine.events import AgentCallbacks
from agent_tool_engine.host import AgentHost
from agent_tool_engine.logging import setup_logging
from agent_tool_engine.models import ToolCall

console = Console()


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Agent Tool Engine CLI",
        prog="agent-tools",
    )

    # Global options
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output (debug logging)",
    )
    parser.add_argument(
        "-w",
        "--workspace",
        help="Workspace directory (adapters, skills, SOUL.md, USER.md)",
    )
    parser.add_argument(
        "-c",
        "--config",
        help="YAML config file",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Chat command
    chat_parser = subparsers.add_parser("chat", help="Send one message to the agent")
    chat_parser.add_argument("message", nargs="+", help="Message text")

    # Adapters command with subcommands
    adapters_parser = subparsers.add_parser("adapters", help="HTTP adapter management")
    adapters_subparsers = adapters_parser.add_subparsers(
        dest="adapters_command", help="Adapter commands"
    )
    adapters_subparsers.add_parser("list", help="List installed adapters")
    install_parser = adapters_subparsers.add_parser("install", help="Install an adapter JSON file")
    install_parser.add_argument("file", help="Adapter JSON file")
    remove_parser = adapters_subparsers.add_parser("remove", help="Remove an installed adapter")
    remove_parser.add_argument("adapter_id", help="Adapter id")

    # Secrets command with subcommands
    secrets_parser = subparsers.add_parser("secrets", help="Adapter secret management")
    secrets_subparsers = secrets_parser.add_subparsers(
        dest="secrets_command", help="Secret commands"
    )
    secrets_subparsers.add_parser("list", help="List stored secret names")
    set_parser = secrets_subparsers.add_parser("set", help="Store a secret")
    set_parser.add_argument("key", help="Secret name")
    set_parser.add_argument("value", help="Secret value")
    delete_parser = secrets_subparsers.add_parser("delete", help="Delete a secret")
    delete_parser.add_argument("key", help="Secret name")

    # Skills command
    skills_parser = subparsers.add_parser("skills", help="Workspace skills")
    skills_subparsers = skills_parser.add_subparsers(dest="skills_command", help="Skill commands")
    skills_subparsers.add_parser("list", help="List workspace skills")

    args = parser.parse_args(argv)

    # Setup logging based on verbosity
    if getattr(args, "verbose", False):
        setup_logging("DEBUG")
    else:
        setup_logging("WARNING")

    if args.command == "chat":
        asyncio.run(cmd_chat(args))
    elif args.command == "adapters":
        cmd_adapters(args)
    elif args.command == "secrets":
        cmd_secrets(args)
    elif args.command == "skills":
        cmd_skills(args)
    else:
        parser.print_help()


def _load_config(args: argparse.Namespace) -> EngineConfig:
    """Build the engine config from CLI args."""
    if args.config:
        config = EngineConfig.from_yaml(Path(args.config))
    else:
        config = EngineConfig.from_dict({})
    if args.workspace:
        config.workspace = Path(args.workspace).expanduser()
    return config


def _create_host(args: argparse.Namespace) -> AgentHost:
    return AgentHost(_load_config(args))


async def cmd_chat(args: argparse.Namespace) -> None:
    """Send one message and stream the reply."""
    host = _create_host(args)
    message = " ".join(args.message)

    def on_tool_start(call: ToolCall, tool_args: dict[str, Any]) -> None:
        args_text = json.dumps(tool_args, ensure_ascii=False)
        console.print(f"\n→ {call.name}({args_text})", style="dim", markup=False, highlight=False)

    def on_tool_end(call_id: str, result: str) -> None:
        preview = result if len(result) <= 200 else result[:200] + "..."
        console.print(f"← {preview}", style="dim", markup=False, highlight=False)

    callbacks = AgentCallbacks(
        on_stream_chunk=lambda text: console.out(text, end="", highlight=False),
        on_tool_start=on_tool_start,
        on_tool_end=on_tool_end,
    )

    try:
        output = await host.send_message(message, callbacks=callbacks)
    except EngineError as e:
        console.print(f"\n[red]Error:[/red] {e}")
        sys.exit(1)
    finally:
        await host.aclose()

    console.print()
    if output.switch_to:
        console.print(f"[yellow]Switch requested: {output.switch_to}[/yellow]")
    console.print(f"[dim]Rounds: {output.rounds}[/dim]")


def cmd_adapters(args: argparse.Namespace) -> None:
    """Adapter management commands."""
    host = _create_host(args)

    if args.adapters_command == "list":
        host.adapters.load_all()
        adapters = host.adapters.registered_adapters()

        table = Table(title="Installed Adapters")
        table.add_column("Id", style="cyan")
        table.add_column("Tools")

        for adapter in adapters:
            table.add_row(adapter["id"], ", ".join(adapter["tools"]))

        console.print(table)
        console.print(f"\n[dim]Total: {len(adapters)} adapters[/dim]")

    elif args.adapters_command == "install":
        path = Path(args.file)
        if not path.is_file():
            console.print(f"[red]File not found: {path}[/red]")
            sys.exit(1)
        try:
            installed = host.adapters.install_adapter(path.read_text(encoding="utf-8"))
        except AdapterError as e:
            console.print(f"[red]Install failed:[/red] {e}")
            sys.exit(1)
        console.print(
            f"[green]Installed adapter {installed.id}[/green] ({', '.join(installed.tools)})"
        )

    elif args.adapters_command == "remove":
        try:
            removed = host.adapters.uninstall_adapter(args.adapter_id)
        except AdapterError as e:
            console.print(f"[red]Remove failed:[/red] {e}")
            sys.exit(1)
        if not removed:
            console.print(f"[red]Adapter not found: {args.adapter_id}[/red]")
            sys.exit(1)
        console.print(f"[green]Removed adapter {args.adapter_id}[/green]")

    else:
        console.print("[yellow]Usage: agent-tools adapters <list|install|remove>[/yellow]")


def cmd_secrets(args: argparse.Namespace) -> None:
    """Secret management commands. Values are never printed."""
    secrets = _create_host(args).secrets

    if args.secrets_command == "list":
        keys = secrets.list_keys()
        for key in keys:
            console.print(f"  {key}")
        console.print(f"\n[dim]Total: {len(keys)} secrets[/dim]")
    elif args.secrets_command == "set":
        secrets.set(args.key, args.value)
        console.print(f"[green]Stored secret {args.key}[/green]")
    elif args.secrets_command == "delete":
        secrets.delete(args.key)
        console.print(f"[green]Deleted secret {args.key}[/green]")
    else:
        console.print("[yellow]Usage: agent-tools secrets <list|set|delete>[/yellow]")


def cmd_skills(args: argparse.Namespace) -> None:
    """List workspace skills."""
    if args.skills_command != "list":
        console.print("[yellow]Usage: agent-tools skills list[/yellow]")
        return

    skills = _create_host(args).catalog.load()

    table = Table(title="Workspace Skills")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Keywords", style="dim")
    table.add_column("Mode", style="dim")

    for skill in skills:
        table.add_row(
            skill.name,
            skill.description[:60],
            ", ".join(skill.keywords),
            "always" if skill.always else "on-demand",
        )

    console.print(table)
    console.print(f"\n[dim]Total: {len(skills)} skills[/dim]")


if __name__ == "__main__":
    main()
