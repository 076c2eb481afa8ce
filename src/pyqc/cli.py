# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Typer command line interface for pyqc."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Annotated

import typer

from .aggregator import Aggregator, default_engines
from .config import OutputFormat, QualityConfig
from .console import detect_tty, get_console_manager
from .engines import TypeCheckEngine
from .enforcement import ExitCode, determine_exit_code
from .errors import ConfigError, ToolMissingError
from .hook import QualityHook, emit_exit_decision
from .logging import configure_logging, fail, info, ok, section, warn
from .reporting import render_stylish, report_to_json

app = typer.Typer(
    name="pyqc",
    help="Run mypy, ruff and black together and decide what may be fixed automatically.",
    no_args_is_help=True,
    add_completion=False,
)

CACHE_DIR_OPTION = Annotated[
    Path | None,
    typer.Option("--cache-dir", help="Directory holding the persisted type-check build info."),
]
DEBUG_OPTION = Annotated[bool, typer.Option("--debug", help="Emit diagnostic logging on stderr.")]
EMOJI_OPTION = Annotated[bool, typer.Option("--emoji/--no-emoji", help="Toggle emoji in output.")]


def _load_config(**overrides: object) -> QualityConfig:
    try:
        return QualityConfig.from_env(**overrides)
    except ConfigError as exc:
        fail(str(exc), use_emoji=False, stderr=True)
        raise typer.Exit(code=ExitCode.TOOL_ERROR) from exc


@app.command("check")
def check_command(
    files: Annotated[list[Path], typer.Argument(help="Files to check.", show_default=False)],
    no_type_check: Annotated[bool, typer.Option("--no-type-check", help="Skip the mypy engine.")] = False,
    no_lint: Annotated[bool, typer.Option("--no-lint", help="Skip the ruff engine.")] = False,
    no_format: Annotated[bool, typer.Option("--no-format", help="Skip the black engine.")] = False,
    fix: Annotated[bool, typer.Option("--fix", help="Apply ruff fixes and black formatting in place.")] = False,
    cache_dir: CACHE_DIR_OPTION = None,
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", min=0.001, help="Overall timeout in seconds."),
    ] = None,
    sequential: Annotated[bool, typer.Option("--sequential", help="Run engines one after another.")] = False,
    output_format: Annotated[
        str,
        typer.Option("--format", help="Output format: stylish or json."),
    ] = "stylish",
    emoji: EMOJI_OPTION = True,
    debug: DEBUG_OPTION = False,
) -> None:
    """Check FILES with the enabled engines.

    Exits 0 when clean, 1 when a tool is missing or configuration is invalid,
    and 2 when issues remain.
    """

    configure_logging(debug=debug)
    if output_format not in ("stylish", "json"):
        fail(f"Unknown output format {output_format!r}; use stylish or json", use_emoji=emoji, stderr=True)
        raise typer.Exit(code=ExitCode.TOOL_ERROR)
    fmt: OutputFormat = "json" if output_format == "json" else "stylish"
    config = _load_config(
        type_check=not no_type_check,
        lint=not no_lint,
        format=not no_format,
        fix=fix,
        cache_dir=cache_dir,
        timeout_s=timeout,
        parallel=False if sequential else None,
        output_format=fmt,
        debug=debug,
    )
    if not config.engines:
        fail("Every engine is disabled; nothing to check", use_emoji=emoji, stderr=True)
        raise typer.Exit(code=ExitCode.TOOL_ERROR)

    aggregator = Aggregator(default_engines(config.cache_dir))
    try:
        report = asyncio.run(
            aggregator.check(
                files,
                engines=config.engines,
                fix=config.fix,
                cache_dir=config.cache_dir,
                parallel=config.parallel,
                timeout_s=config.timeout_s,
            ),
        )
    except ToolMissingError as exc:
        fail(str(exc), use_emoji=emoji, stderr=True)
        raise typer.Exit(code=ExitCode.TOOL_ERROR) from exc

    if config.output_format == "json":
        typer.echo(report_to_json(report))
    else:
        color = detect_tty()
        if report.issues:
            section("Quality report", use_color=color)
        render_stylish(report.issues, get_console_manager().get(color=color, emoji=emoji), color=color)
        if report.fixed_count:
            ok(f"Applied {report.fixed_count} fix(es)", use_emoji=emoji)
        if report.success:
            ok("No issues found", use_emoji=emoji)
    if report.pending:
        pending = ", ".join(name.value for name in report.pending)
        fail(f"Timed out after {config.timeout_s:g}s before {pending} finished", use_emoji=emoji, stderr=True)
        raise typer.Exit(code=ExitCode.TOOL_ERROR)
    if report.timed_out:
        warn(f"Timed out after {config.timeout_s:g}s; results are partial", use_emoji=emoji, stderr=True)
    raise typer.Exit(code=ExitCode.SUCCESS if report.success else ExitCode.BLOCKED)


@app.command("hook")
def hook_command(debug: DEBUG_OPTION = False) -> None:
    """Read an editor/agent post-write payload from stdin and gate on its file."""

    configure_logging(debug=debug)
    try:
        config = QualityConfig.from_env(debug=debug)
    except ConfigError as exc:
        decision = determine_exit_code(None, exc)
    else:
        decision = asyncio.run(QualityHook(config).run(sys.stdin.read()))
    emit_exit_decision(decision)
    raise typer.Exit(code=decision.exit_code)


@app.command("clear-cache")
def clear_cache_command(cache_dir: CACHE_DIR_OPTION = None, emoji: EMOJI_OPTION = True) -> None:
    """Delete the persisted type-check build info, forcing a cold rebuild."""

    config = _load_config(cache_dir=cache_dir)
    engine = TypeCheckEngine(cache_dir=config.cache_dir)
    if not engine.has_cache_state():
        info(f"No type-check cache in {engine.build_info_dir}", use_emoji=emoji)
        return
    asyncio.run(engine.dispose())
    ok(f"Cleared type-check cache in {engine.build_info_dir}", use_emoji=emoji)


def main() -> None:
    """Console-script entry point."""

    app()


__all__ = ["app", "main"]
