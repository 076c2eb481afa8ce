# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""File-path context used to judge context-dependent rules."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath
from typing import Final

TEST_DIRS: Final[frozenset[str]] = frozenset({"tests", "test", "__tests__"})
TEST_MARKERS: Final[tuple[str, ...]] = (".test.", ".spec.")
DEV_MARKERS: Final[tuple[str, ...]] = (".dev.", "debug", "development", "scripts/dev")
UI_DIRS: Final[frozenset[str]] = frozenset({"ui", "views", "widgets", "templates"})
UI_SUFFIXES: Final[tuple[str, ...]] = ("_view.py", "_widget.py")

DEBUGGER_RULE: Final[str] = "T100"
PRINT_RULES: Final[frozenset[str]] = frozenset({"T201", "T203"})
AMBIGUOUS_UNICODE_RULE: Final[str] = "RUF001"
PRINTF_FORMAT_RULE: Final[str] = "UP031"


@dataclass(frozen=True, slots=True)
class ContextCheck:
    """Per-issue verdict for a context-dependent rule."""

    should_auto_fix: bool
    reason: str


def _normalise(file_path: str) -> str:
    return file_path.replace("\\", "/")


def is_test_file(file_path: str | None) -> bool:
    """Return ``True`` for paths under a test directory or named like a test module."""

    if not file_path:
        return False
    normalised = _normalise(file_path)
    path = PurePath(normalised)
    if TEST_DIRS.intersection(path.parts[:-1]):
        return True
    name = path.name
    if name == "conftest.py" or (name.startswith("test_") and name.endswith(".py")) or name.endswith("_test.py"):
        return True
    return any(marker in normalised for marker in TEST_MARKERS)


def is_dev_file(file_path: str | None) -> bool:
    """Return ``True`` for development or debugging helpers."""

    if not file_path:
        return False
    normalised = _normalise(file_path)
    return any(marker in normalised for marker in DEV_MARKERS)


def is_ui_file(file_path: str | None) -> bool:
    """Return ``True`` for GUI entry points, views, widgets and templates."""

    if not file_path:
        return False
    path = PurePath(_normalise(file_path))
    if path.suffix == ".pyw":
        return True
    if UI_DIRS.intersection(path.parts[:-1]):
        return True
    return path.name.endswith(UI_SUFFIXES)


def check_context(rule_id: str, file_path: str | None) -> ContextCheck:
    """Decide whether a context-dependent ``rule_id`` may be fixed in ``file_path``.

    Debugger breakpoints are always removed. Print statements are kept in tests
    and dev helpers where output may be asserted on or wanted. Ambiguous
    unicode is kept in UI code where it is likely user-facing text.
    """

    if not file_path:
        return ContextCheck(False, "No file path provided")
    if rule_id == DEBUGGER_RULE:
        return ContextCheck(True, "Debugger calls are never intentional in committed code")
    if rule_id in PRINT_RULES:
        if is_test_file(file_path) or is_dev_file(file_path):
            return ContextCheck(False, "Output might be intentional in test/dev code")
        return ContextCheck(True, "Output statements are removed from production code")
    if rule_id == AMBIGUOUS_UNICODE_RULE:
        if is_ui_file(file_path):
            return ContextCheck(False, "Unicode may be intentional in UI text")
        return ContextCheck(True, "Ambiguous unicode replaced outside UI code")
    if rule_id == PRINTF_FORMAT_RULE:
        return ContextCheck(True, "printf-style formatting converts to an equivalent format call")
    return ContextCheck(False, "Not safe to auto-fix")


__all__ = [
    "ContextCheck",
    "check_context",
    "is_dev_file",
    "is_test_file",
    "is_ui_file",
]
