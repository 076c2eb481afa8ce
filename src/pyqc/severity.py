# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Severity related types and helpers."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Final


class Severity(str, Enum):
    """Severity levels normalising different tool vocabularies."""

    ERROR = "error"
    WARNING = "warning"


_SEVERITY_ALIASES: Final[dict[str, Severity]] = {
    "error": Severity.ERROR,
    "fatal": Severity.ERROR,
    "warning": Severity.WARNING,
    "warn": Severity.WARNING,
    "note": Severity.WARNING,
    "info": Severity.WARNING,
    "information": Severity.WARNING,
    "hint": Severity.WARNING,
}


def severity_from_code(code: str | None, default: Severity = Severity.WARNING) -> Severity:
    """Infer severity from conventional code prefixes (e.g. E, F, W)."""

    if not code:
        return default
    head = code[0].upper()
    if head in {"E", "F"}:
        return Severity.ERROR
    if head == "W":
        return Severity.WARNING
    return default


def severity_from_label(
    label: object,
    default: Severity = Severity.WARNING,
    *,
    aliases: Mapping[str, Severity] | None = None,
) -> Severity:
    """Map a tool-native severity label onto :class:`Severity`.

    Args:
        label: Raw severity value emitted by a tool.
        default: Severity returned when ``label`` is not recognised.
        aliases: Optional alias table overriding the built-in vocabulary.

    Returns:
        Severity: Normalised severity for ``label``.
    """

    table = aliases if aliases is not None else _SEVERITY_ALIASES
    if isinstance(label, str):
        return table.get(label.strip().lower(), default)
    return default


SEVERITY_RANK: Final[dict[Severity, int]] = {
    Severity.ERROR: 0,
    Severity.WARNING: 1,
}
