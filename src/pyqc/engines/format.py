# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""black-backed format engine running in-process."""

from __future__ import annotations

import asyncio
import importlib
import logging
import tomllib
from collections.abc import Callable
from pathlib import Path
from types import ModuleType
from typing import Any, Final

from ..cancellation import is_cancelled
from ..errors import ConfigurationError, FileWriteError, ToolMissingError
from ..models import CheckerResult, EngineName, Issue
from ..paths import atomic_write_text, find_upward, is_python_file
from ..severity import Severity
from .base import EngineConfig, Stopwatch

LOGGER = logging.getLogger(__name__)

BLACK_TOOL: Final[str] = "black"
FORMAT_RULE: Final[str] = "black/format"
PARSE_RULE: Final[str] = "black/parse"
CONFIG_RULE: Final[str] = "black/config"
FORMAT_SUGGESTION: Final[str] = "Run black on this file or re-run with fix enabled"


def load_black() -> ModuleType:
    """Import and return the ``black`` module.

    Raises:
        ToolMissingError: If black is not installed.
    """

    try:
        return importlib.import_module(BLACK_TOOL)
    except ImportError as exc:
        raise ToolMissingError(BLACK_TOOL, str(exc)) from exc


def _declares_black(candidate: Path) -> bool:
    try:
        data = tomllib.loads(candidate.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError):
        return False
    tool = data.get("tool")
    return isinstance(tool, dict) and isinstance(tool.get("black"), dict)


def find_black_config(start: Path) -> Path | None:
    """Return the nearest ``pyproject.toml`` with a ``[tool.black]`` table."""

    return find_upward(start, ("pyproject.toml",), accept=_declares_black)


def _read_black_table(path: Path) -> dict[str, Any]:
    data = tomllib.loads(path.read_text(encoding="utf-8"))
    return dict(data["tool"]["black"])


def black_settings(start: Path) -> dict[str, Any]:
    """Return the nearest ``[tool.black]`` table at or above ``start``."""

    found = find_black_config(start)
    return _read_black_table(found) if found is not None else {}


def build_mode(black: ModuleType, settings: dict[str, Any], *, is_pyi: bool = False) -> Any:
    """Translate a ``[tool.black]`` table into a ``black.Mode``.

    Raises:
        ConfigurationError: If ``target-version`` names an unknown Python version.
    """

    options: dict[str, Any] = {"is_pyi": is_pyi}
    line_length = settings.get("line-length", settings.get("line_length"))
    if isinstance(line_length, int):
        options["line_length"] = line_length
    targets = settings.get("target-version", settings.get("target_version"))
    if isinstance(targets, list):
        try:
            options["target_versions"] = {black.TargetVersion[str(item).upper()] for item in targets}
        except KeyError as exc:
            raise ConfigurationError(f"Unknown black target-version {exc.args[0].lower()!r}") from exc
    if settings.get("skip-string-normalization") or settings.get("skip_string_normalization"):
        options["string_normalization"] = False
    if settings.get("skip-magic-trailing-comma") or settings.get("skip_magic_trailing_comma"):
        options["magic_trailing_comma"] = False
    if settings.get("preview"):
        options["preview"] = True
    return black.Mode(**options)


class FormatEngine:
    """Check or apply black formatting for each target file."""

    name = EngineName.FORMAT

    def __init__(self, *, loader: Callable[[], ModuleType] | None = None) -> None:
        self._loader = loader if loader is not None else load_black
        self._black: ModuleType | None = None

    def _module(self) -> ModuleType:
        if self._black is None:
            self._black = self._loader()
        return self._black

    async def check(self, config: EngineConfig) -> CheckerResult:
        """Verify formatting of ``config.files``, rewriting them when ``config.fix`` is set.

        Raises:
            ToolMissingError: If black cannot be imported.
        """

        watch = Stopwatch()
        black = self._module()
        fix = config.fix and (config.rules is None or FORMAT_RULE in config.rules)
        config_cache: dict[Path, Path | None] = {}
        broken_configs: set[Path] = set()
        issues: list[Issue] = []
        modified: list[Path] = []

        for path in config.files:
            if is_cancelled(config.token):
                return CheckerResult.empty(watch.elapsed_ms())
            if not is_python_file(path):
                continue
            folder = path.parent
            if folder not in config_cache:
                config_cache[folder] = find_black_config(folder)
            config_path = config_cache[folder]
            settings = _read_black_table(config_path) if config_path is not None else {}
            try:
                mode = build_mode(black, settings, is_pyi=path.suffix == ".pyi")
            except ConfigurationError as exc:
                if config_path is not None and config_path not in broken_configs:
                    broken_configs.add(config_path)
                    issues.append(_error(config_path, f"Invalid [tool.black] configuration: {exc}", CONFIG_RULE))
                continue
            issue, rewritten = await self._check_file(black, path, mode, fix=fix)
            if issue is not None:
                issues.append(issue)
            if rewritten:
                modified.append(path)

        if is_cancelled(config.token):
            return CheckerResult.empty(watch.elapsed_ms())
        if not config.fix:
            return CheckerResult(issues=tuple(issues), duration=watch.elapsed_ms(), fixable=bool(issues))
        return CheckerResult(
            issues=tuple(issues),
            duration=watch.elapsed_ms(),
            fixable=False,
            fixed_count=len(modified),
            modified_files=tuple(modified),
        )

    async def _check_file(self, black: ModuleType, path: Path, mode: Any, *, fix: bool) -> tuple[Issue | None, bool]:
        try:
            source = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            return _error(path, f"Failed to read file: {exc}"), False
        try:
            formatted = black.format_file_contents(source, fast=False, mode=mode)
        except black.NothingChanged:
            return None, False
        except black.InvalidInput as exc:
            return _error(path, f"Cannot parse for formatting: {exc}", PARSE_RULE), False
        if not fix:
            return (
                Issue(
                    engine=EngineName.FORMAT,
                    severity=Severity.WARNING,
                    rule_id=FORMAT_RULE,
                    file=path,
                    message="File is not formatted with black",
                    suggestion=FORMAT_SUGGESTION,
                ),
                False,
            )
        try:
            await asyncio.to_thread(atomic_write_text, path, formatted)
        except FileWriteError as exc:
            return _error(path, str(exc)), False
        LOGGER.debug("black reformatted %s", path)
        return None, True


def _error(path: Path, message: str, rule_id: str | None = None) -> Issue:
    return Issue(engine=EngineName.FORMAT, severity=Severity.ERROR, rule_id=rule_id, file=path, message=message)


__all__ = [
    "BLACK_TOOL",
    "CONFIG_RULE",
    "FORMAT_RULE",
    "PARSE_RULE",
    "FormatEngine",
    "black_settings",
    "build_mode",
    "find_black_config",
    "load_black",
]
