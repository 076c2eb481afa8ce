# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""mypy-backed type-check engine with a persistent incremental build cache."""

from __future__ import annotations

import asyncio
import importlib.util
import logging
import re
import shutil
import sys
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Final

from ..cancellation import is_cancelled
from ..errors import ConfigurationError, EngineUnavailableError, ToolMissingError
from ..models import CheckerResult, EngineName, Issue
from ..parsers import parse_mypy
from ..paths import EXCLUDED_DIRS, default_cache_dir
from .base import EngineConfig, Stopwatch
from .process import ProcessResult, ProcessRunner, run_process
from .project import MYPY_CONFIG_NAMES, find_project_config, load_project_config, project_files

LOGGER = logging.getLogger(__name__)

BUILD_INFO_DIRNAME: Final[str] = "mypy-buildinfo"
MYPY_MODULE: Final[str] = "mypy"
SYNTAX_CODE: Final[str] = "syntax"
CONFIG_RULE: Final[str] = "config"
_FATAL_RETURNCODE: Final[int] = 2
_EXCLUDE_PATTERN: Final[str] = (
    r"(^|/)(" + "|".join(re.escape(name) for name in sorted(EXCLUDED_DIRS)) + r"|[^/]+\.egg-info)/"
)


class EngineState(str, Enum):
    """Lifecycle of the type-check engine's compilation unit."""

    COLD = "cold"
    WARM = "warm"
    CLEARING = "clearing"
    CLEARED = "cleared"


@dataclass(frozen=True, slots=True)
class TypeCheckProgram:
    """Compilation unit reused across warm ``check`` calls.

    Attributes:
        config_path: mypy configuration file the unit was built from.
        root: Project root; mypy runs with this as its working directory.
        files: Resolved project sources plus any extra requested files.
        extras: Requested files outside the configured project sources.
        cache_dir: Build-info directory handed to ``--cache-dir``.
        argv: Full mypy command line.
    """

    config_path: Path
    root: Path
    files: frozenset[Path]
    extras: frozenset[Path]
    cache_dir: Path
    argv: tuple[str, ...]

    def covers(self, targets: Iterable[Path]) -> bool:
        """Return ``True`` when every path in ``targets`` belongs to this unit."""

        return all(target in self.files for target in targets)


def _mypy_argv(
    config_path: Path,
    build_info: Path,
    *,
    files_configured: bool,
    extras: Iterable[Path],
) -> tuple[str, ...]:
    argv = [
        sys.executable,
        "-m",
        MYPY_MODULE,
        "-O",
        "json",
        "--incremental",
        "--cache-dir",
        str(build_info),
        "--config-file",
        str(config_path),
        "--no-error-summary",
        "--no-pretty",
    ]
    targets = sorted(str(path) for path in extras)
    if not files_configured:
        argv.extend(("--exclude", _EXCLUDE_PATTERN))
        targets.insert(0, str(config_path.parent))
    argv.extend(targets)
    return tuple(argv)


def mypy_available() -> bool:
    """Return ``True`` when the mypy package can be imported by this interpreter."""

    return importlib.util.find_spec(MYPY_MODULE) is not None


def _is_fileless(issue: Issue) -> bool:
    # Diagnostics without a file fall back to the working directory.
    return Path(issue.file).is_dir()


def _order_issues(issues: Iterable[Issue]) -> list[Issue]:
    syntactic: list[Issue] = []
    semantic: list[Issue] = []
    global_: list[Issue] = []
    for issue in issues:
        if _is_fileless(issue):
            global_.append(issue)
        elif issue.rule_id == SYNTAX_CODE:
            syntactic.append(issue)
        else:
            semantic.append(issue)
    return [*syntactic, *semantic, *global_]


def _remove_tree(path: Path) -> None:
    if not path.exists():
        return
    try:
        shutil.rmtree(path)
    except OSError as exc:
        LOGGER.warning("could not remove mypy build info at %s: %s", path, exc)


class TypeCheckEngine:
    """Run mypy over a project while keeping its compilation unit warm.

    The engine moves through :class:`EngineState`: ``COLD`` until the first
    :meth:`check`, ``WARM`` while the unit is reused, ``CLEARING`` while
    :meth:`clear_cache` removes the on-disk build info, then ``CLEARED``. A
    ``check`` that observes ``CLEARING`` returns an empty result instead of
    rebuilding mid-clear.
    """

    name = EngineName.TYPE_CHECK

    def __init__(self, *, cache_dir: Path | None = None, runner: ProcessRunner | None = None) -> None:
        self._cache_dir = cache_dir if cache_dir is not None else default_cache_dir()
        self._runner: ProcessRunner = runner if runner is not None else run_process
        self._program: TypeCheckProgram | None = None
        self._state = EngineState.COLD

    @property
    def state(self) -> EngineState:
        """Return the current lifecycle state."""

        return self._state

    @property
    def program(self) -> TypeCheckProgram | None:
        """Return the live compilation unit, if any."""

        return self._program

    @property
    def cache_dir(self) -> Path:
        """Return the cache root the engine currently writes under."""

        return self._cache_dir

    @property
    def build_info_dir(self) -> Path:
        """Return the persisted mypy incremental cache location."""

        return self._cache_dir / BUILD_INFO_DIRNAME

    def has_cache_state(self) -> bool:
        """Return ``True`` when a compilation unit or build-info artifact exists."""

        return self._program is not None or self.build_info_dir.exists()

    async def check(self, config: EngineConfig) -> CheckerResult:
        """Type-check ``config.files`` and return their diagnostics.

        Raises:
            ToolMissingError: If mypy cannot be imported or its interpreter is missing.
        """

        watch = Stopwatch()
        if self._state is EngineState.CLEARING:
            LOGGER.debug("type-check requested while cache is clearing; returning empty result")
            return CheckerResult.empty(watch.elapsed_ms())
        if not mypy_available():
            raise ToolMissingError(MYPY_MODULE, "module 'mypy' could not be imported")
        self._adopt_cache_dir(config.cache_dir)
        if is_cancelled(config.token):
            return CheckerResult.empty(watch.elapsed_ms())

        requested = frozenset(config.files)
        try:
            program = self._ensure_program(config, requested)
        except ConfigurationError as exc:
            return CheckerResult.failure(
                EngineName.TYPE_CHECK,
                str(exc),
                file=exc.path or config.files[0],
                duration=watch.elapsed_ms(),
                rule_id=CONFIG_RULE,
            )

        try:
            completed = await self._runner(program.argv, cwd=program.root)
        except EngineUnavailableError as exc:
            LOGGER.warning("type-check engine unavailable, skipping: %s", exc)
            return CheckerResult.empty(watch.elapsed_ms())
        except FileNotFoundError as exc:
            raise ToolMissingError(MYPY_MODULE, str(exc)) from exc

        if self._state is EngineState.CLEARING or self._program is not program or is_cancelled(config.token):
            return CheckerResult.empty(watch.elapsed_ms())

        issues = self._collect_issues(completed, program, requested)
        return CheckerResult(issues=tuple(issues), duration=watch.elapsed_ms(), fixable=False)

    async def clear_cache(self) -> None:
        """Drop the compilation unit and delete the persisted build info.

        Calling this repeatedly, or while a clear is already running, is safe.
        """

        if self._state is EngineState.CLEARING:
            return
        self._state = EngineState.CLEARING
        self._program = None
        try:
            await asyncio.to_thread(_remove_tree, self.build_info_dir)
        finally:
            self._state = EngineState.CLEARED

    async def dispose(self) -> None:
        """Release every resource held by the engine."""

        await self.clear_cache()

    def _adopt_cache_dir(self, cache_dir: Path | None) -> None:
        if cache_dir is None or cache_dir == self._cache_dir:
            return
        LOGGER.debug("type-check cache moved from %s to %s", self._cache_dir, cache_dir)
        self._cache_dir = cache_dir
        self._program = None

    def _ensure_program(self, config: EngineConfig, requested: frozenset[Path]) -> TypeCheckProgram:
        program = self._program
        if program is not None and program.cache_dir == self.build_info_dir and program.covers(requested):
            return program
        carried: frozenset[Path] = program.extras if program is not None else frozenset()
        program = self._build_program(config, requested | carried)
        self._program = program
        self._state = EngineState.WARM
        return program

    def _build_program(self, config: EngineConfig, requested: frozenset[Path]) -> TypeCheckProgram:
        start = config.files[0] if config.files else config.working_dir
        config_path = find_project_config(start)
        if config_path is None:
            names = ", ".join(MYPY_CONFIG_NAMES)
            folder = start if start.is_dir() else start.parent
            raise ConfigurationError(f"No mypy configuration found at or above {folder} (looked for {names})")
        project = load_project_config(config_path)
        sources = project_files(project)
        extras = frozenset(path for path in requested if path not in sources)
        argv = _mypy_argv(
            config_path,
            self.build_info_dir,
            files_configured=project.files_option is not None,
            extras=extras,
        )
        LOGGER.debug("built type-check program from %s with %d source(s)", config_path, len(sources) + len(extras))
        return TypeCheckProgram(
            config_path=config_path,
            root=project.root,
            files=sources | extras,
            extras=extras,
            cache_dir=self.build_info_dir,
            argv=argv,
        )

    def _collect_issues(
        self,
        completed: ProcessResult,
        program: TypeCheckProgram,
        requested: frozenset[Path],
    ) -> list[Issue]:
        parsed = parse_mypy(completed.stdout, base_dir=program.root)
        wanted = {str(path) for path in requested}
        selected = [issue for issue in parsed if issue.file in wanted or _is_fileless(issue)]
        if completed.returncode == _FATAL_RETURNCODE and not parsed:
            detail = (completed.stderr or completed.stdout).strip() or "mypy exited with a fatal error"
            selected.append(
                CheckerResult.failure(EngineName.TYPE_CHECK, detail, rule_id=CONFIG_RULE).issues[0],
            )
        return _order_issues(selected)


__all__ = [
    "BUILD_INFO_DIRNAME",
    "EngineState",
    "TypeCheckEngine",
    "TypeCheckProgram",
    "mypy_available",
]
