#!/usr/bin/env python3
"""
pair-run CLI - run snippets locally without the HTTP server.

Usage:
  python scripts/run_cli.py languages               # Registry overview
  python scripts/run_cli.py tools                   # Which toolchains are installed
  python scripts/run_cli.py run hello.py -l python  # Run a source file
  echo 'puts 1' | python scripts/run_cli.py run - -l ruby
"""

import argparse
import asyncio
import json
import shutil
import sys
from pathlib import Path
from typing import Optional

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load .env file if it exists
from dotenv import load_dotenv
load_dotenv(Path(__file__).parent.parent / ".env")

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich import box
from pydantic import ValidationError

from pairrun.config import (
    LANGUAGES,
    CompileSpec,
    DirectSpec,
    ExecutionConfig,
    UnsupportedSpec,
    get_source_filename,
    settings,
)
from pairrun.models import RunnerException
from pairrun.services import RunDispatcher, outcome_to_response
from pairrun.utils.logging import setup_logging

console = Console()


# ============================================================================
# Formatting Helpers
# ============================================================================

def format_kind(kind: str) -> Text:
    """Color-code a registry entry kind."""
    styles = {"direct": "green", "compile": "cyan", "unsupported": "red"}
    return Text(kind, style=styles.get(kind, "white"))


def first_installed(candidates) -> Optional[str]:
    """Command name of the first candidate found on PATH."""
    for candidate in candidates:
        if "{" in candidate.command:
            # {exe} is produced by the compile phase
            return candidate.command
        if shutil.which(candidate.command):
            return candidate.command
    return None


def format_tool(found: Optional[str]) -> Text:
    if found is None:
        return Text("missing", style="red")
    return Text(found, style="green")


# ============================================================================
# Commands
# ============================================================================

def cmd_languages(args) -> int:
    table = Table(title=f"Languages ({len(LANGUAGES)})", box=box.ROUNDED)
    table.add_column("Id", style="cyan")
    table.add_column("Kind")
    table.add_column("Source file", style="dim")
    table.add_column("Commands / reason")

    for language_id, spec in LANGUAGES.items():
        if isinstance(spec, UnsupportedSpec):
            detail = spec.reason
        elif isinstance(spec, DirectSpec):
            detail = " | ".join(c.describe() for c in spec.candidates)
        else:
            detail = " | ".join(c.describe() for c in spec.compile)
        table.add_row(language_id, format_kind(spec.kind), get_source_filename(spec), detail)

    console.print(table)
    return 0


def cmd_tools(args) -> int:
    table = Table(title="Installed toolchains", box=box.ROUNDED)
    table.add_column("Id", style="cyan")
    table.add_column("Compiler")
    table.add_column("Runtime")

    available = 0
    for language_id, spec in LANGUAGES.items():
        if isinstance(spec, UnsupportedSpec):
            continue
        if isinstance(spec, CompileSpec):
            compiler = first_installed(spec.compile)
            runtime = first_installed(spec.run)
            table.add_row(language_id, format_tool(compiler), format_tool(runtime))
            available += compiler is not None and runtime is not None
        else:
            runtime = first_installed(spec.candidates)
            table.add_row(language_id, Text("-", style="dim"), format_tool(runtime))
            available += runtime is not None

    console.print(table)
    console.print(f"\n[bold]{available}[/bold] languages runnable on this host")
    return 0


def build_execution_config(timeout: Optional[float] = None) -> ExecutionConfig:
    """Execution settings from the environment, with an optional timeout override.

    Raises:
        pydantic.ValidationError: if the timeout is outside the allowed range
    """
    values = settings.execution.model_dump()
    if timeout is not None:
        values["exec_timeout_seconds"] = timeout
    return ExecutionConfig(**values)


async def run_source(language: str, code: str, config: ExecutionConfig) -> dict:
    dispatcher = RunDispatcher(config)
    outcome = await dispatcher.run(language, code)
    try:
        return outcome_to_response(language, outcome).to_content()
    except RunnerException as e:
        return e.to_content()


def cmd_run(args) -> int:
    if args.source == "-":
        code = sys.stdin.read()
    else:
        try:
            code = Path(args.source).read_text(encoding="utf-8")
        except OSError as e:
            console.print(f"[red]Error:[/red] Cannot read {args.source}: {e}")
            return 1

    try:
        config = build_execution_config(args.timeout)
    except ValidationError as e:
        console.print(f"[red]Error:[/red] Invalid --timeout: {e.errors()[0]['msg']}")
        return 2

    body = asyncio.run(run_source(args.language, code, config))

    if args.json:
        console.print_json(json.dumps(body))
    else:
        if body.get("stdout"):
            console.print(Panel(body["stdout"].rstrip("\n"), title="stdout", border_style="green"))
        if body.get("stderr"):
            console.print(Panel(body["stderr"].rstrip("\n"), title="stderr", border_style="red"))
        if body.get("error") and body.get("error") != body.get("stderr"):
            console.print(f"[red]Error:[/red] {body['error']}")
        status = "[green]ok[/green]" if body.get("ok") else "[red]failed[/red]"
        timed_out = " [yellow](timed out)[/yellow]" if body.get("timedOut") else ""
        console.print(f"{status} exit={body.get('exitCode')}{timed_out}")

    return 0 if body.get("ok") else 1


def main():
    parser = argparse.ArgumentParser(description="pair-run local CLI")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Log level for dispatcher output (default: WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("languages", help="List registry languages")
    subparsers.add_parser("tools", help="Show which toolchains are installed")

    run_parser = subparsers.add_parser("run", help="Run a source file")
    run_parser.add_argument("source", help="Source file path, or - for stdin")
    run_parser.add_argument("-l", "--language", required=True, help="Language id")
    run_parser.add_argument(
        "--timeout",
        type=float,
        help=f"Per-process timeout in seconds (default: {settings.exec_timeout_seconds})",
    )
    run_parser.add_argument("--json", action="store_true", help="Print the raw response body")

    args = parser.parse_args()
    setup_logging(level=args.log_level, log_format="console")

    commands = {"languages": cmd_languages, "tools": cmd_tools, "run": cmd_run}
    sys.exit(commands[args.command](args))


if __name__ == "__main__":
    main()
