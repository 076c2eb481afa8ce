# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""ruff-backed lint engine."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Callable, Collection, Iterable, Sequence
from pathlib import Path
from typing import Final

from ..cancellation import is_cancelled
from ..errors import FileWriteError, ToolMissingError
from ..models import CheckerResult, EngineName, Issue
from ..parsers import parse_ruff, ruff_payload_has_fix
from ..paths import atomic_write_text
from ..severity import Severity
from .base import EngineConfig, Stopwatch
from .process import ProcessResult, ProcessRunner, run_process

LOGGER = logging.getLogger(__name__)

RUFF_TOOL: Final[str] = "ruff"
_RUFF_ERROR_RETURNCODE: Final[int] = 2
_RUFF_CODE: Final[re.Pattern[str]] = re.compile(r"[A-Z]{1,4}[0-9]{1,4}")

BinaryLocator = Callable[[], str]


def find_ruff_binary() -> str:
    """Return the ruff executable bundled with the installed ``ruff`` package.

    Raises:
        ToolMissingError: If the package is not installed or ships no binary.
    """

    try:
        from ruff.__main__ import find_ruff_bin
    except ImportError as exc:
        raise ToolMissingError(RUFF_TOOL, str(exc)) from exc
    try:
        return str(find_ruff_bin())
    except FileNotFoundError as exc:
        raise ToolMissingError(RUFF_TOOL, str(exc)) from exc


def _check_argv(binary: str, files: Sequence[Path]) -> tuple[str, ...]:
    return (binary, "check", "--output-format=json", "--no-fix", "--exit-zero", *(str(path) for path in files))


def ruff_codes(rules: Iterable[str]) -> tuple[str, ...]:
    """Return the ruff rule codes among ``rules``, sorted and without duplicates."""

    return tuple(sorted({rule for rule in rules if _RUFF_CODE.fullmatch(rule)}))


def _fix_argv(binary: str, path: Path, select: Collection[str] | None = None) -> tuple[str, ...]:
    argv = [binary, "check", "--fix-only", "--exit-zero", "--quiet"]
    if select is not None:
        argv.append(f"--select={','.join(select)}")
    return (*argv, "--stdin-filename", str(path), "-")


class LintEngine:
    """Report ruff diagnostics and, when asked, apply ruff's safe fixes."""

    name = EngineName.LINT

    def __init__(
        self,
        *,
        runner: ProcessRunner | None = None,
        binary_locator: BinaryLocator | None = None,
    ) -> None:
        self._runner: ProcessRunner = runner if runner is not None else run_process
        self._locate = binary_locator if binary_locator is not None else find_ruff_binary
        self._binary: str | None = None

    def _ruff(self) -> str:
        if self._binary is None:
            self._binary = self._locate()
        return self._binary

    async def _run(self, argv: Sequence[str], *, cwd: Path, stdin_text: str | None = None) -> ProcessResult:
        try:
            return await self._runner(tuple(argv), cwd=cwd, stdin_text=stdin_text)
        except FileNotFoundError as exc:
            self._binary = None
            raise ToolMissingError(RUFF_TOOL, str(exc)) from exc

    async def _report(self, binary: str, config: EngineConfig) -> tuple[list[Issue], bool] | Issue:
        completed = await self._run(_check_argv(binary, config.files), cwd=config.working_dir)
        if completed.returncode == _RUFF_ERROR_RETURNCODE:
            detail = completed.stderr.strip() or "ruff exited with an error"
            return Issue(engine=EngineName.LINT, severity=Severity.ERROR, file=config.files[0], message=detail)
        issues = parse_ruff(completed.stdout, base_dir=config.working_dir)
        return issues, ruff_payload_has_fix(completed.stdout)

    async def check(self, config: EngineConfig) -> CheckerResult:
        """Lint ``config.files``; with ``config.fix`` rewrite them first.

        Raises:
            ToolMissingError: If the ruff executable cannot be located or run.
        """

        watch = Stopwatch()
        binary = self._ruff()
        if is_cancelled(config.token):
            return CheckerResult.empty(watch.elapsed_ms())

        select = ruff_codes(config.rules) if config.rules is not None else None
        baseline = 0
        modified: list[Path] = []
        write_failures: list[Issue] = []
        if config.fix and select != ():
            before = await self._report(binary, config)
            if isinstance(before, Issue):
                return CheckerResult(issues=(before,), duration=watch.elapsed_ms(), fixable=False)
            baseline = len(before[0])
            for path in config.files:
                if is_cancelled(config.token):
                    return CheckerResult.empty(watch.elapsed_ms())
                try:
                    changed = await self._fix_file(binary, path, config.working_dir, select)
                except FileWriteError as exc:
                    write_failures.append(
                        Issue(engine=EngineName.LINT, severity=Severity.ERROR, file=path, message=str(exc)),
                    )
                    continue
                if changed:
                    modified.append(path)

        if is_cancelled(config.token):
            return CheckerResult.empty(watch.elapsed_ms())
        after = await self._report(binary, config)
        if is_cancelled(config.token):
            return CheckerResult.empty(watch.elapsed_ms())
        if isinstance(after, Issue):
            return CheckerResult(issues=(after, *write_failures), duration=watch.elapsed_ms(), fixable=False)

        issues, fixable = after
        if not config.fix:
            return CheckerResult(issues=tuple(issues), duration=watch.elapsed_ms(), fixable=fixable)
        return CheckerResult(
            issues=(*issues, *write_failures),
            duration=watch.elapsed_ms(),
            fixable=fixable,
            fixed_count=max(baseline - len(issues), 0) if modified else 0,
            modified_files=tuple(modified),
        )

    async def _fix_file(self, binary: str, path: Path, cwd: Path, select: Collection[str] | None) -> bool:
        """Pipe ``path`` through ``ruff --fix-only`` and write back when it changed.

        ``select`` limits the fixes to those rule codes; ``None`` keeps the
        project's own rule selection.
        """

        try:
            original = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            # The reporting pass surfaces unreadable files as ruff diagnostics.
            LOGGER.debug("skipping ruff fix for %s: %s", path, exc)
            return False
        completed = await self._run(_fix_argv(binary, path, select), cwd=cwd, stdin_text=original)
        if completed.returncode != 0 or not completed.stdout or completed.stdout == original:
            return False
        await asyncio.to_thread(atomic_write_text, path, completed.stdout)
        LOGGER.debug("ruff rewrote %s", path)
        return True


__all__ = ["LintEngine", "RUFF_TOOL", "find_ruff_binary", "ruff_codes"]
