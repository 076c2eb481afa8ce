# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Render quality reports as stylish console output or JSON."""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from itertools import groupby
from typing import Final

from rich.console import Console
from rich.text import Text

from .aggregator import QualityReport
from .models import Issue
from .severity import Severity

LOCATION_SEPARATOR: Final[str] = ":"
MISSING_RULE_PLACEHOLDER: Final[str] = "-"


def severity_color(sev: Severity) -> str:
    """Return the rich colour name associated with a severity level."""

    return {Severity.ERROR: "red", Severity.WARNING: "yellow"}.get(sev, "yellow")


def clean_message(rule_id: str | None, message: str) -> str:
    """Strip a leading ``rule_id`` prefix and surrounding whitespace from ``message``."""

    first_line, newline, remainder = message.partition("\n")
    working = first_line.strip()
    code = (rule_id or "").strip()
    if code:
        for pattern in (f"{code}: ", f"[{code}] ", f"{code} "):
            if working.startswith(pattern):
                working = working[len(pattern) :]
                break
    return working + "\n" + remainder if newline else working


def format_issue_line(issue: Issue, position_width: int, *, color: bool) -> Text:
    """Return one stylish line: position, severity, message and rule."""

    position = f"{issue.line}{LOCATION_SEPARATOR}{issue.col}".ljust(position_width)
    line = Text("  ")
    line.append(position, style="dim" if color else None)
    line.append("  ")
    line.append(issue.severity.value.ljust(7), style=severity_color(issue.severity) if color else None)
    line.append(" ")
    line.append(clean_message(issue.rule_id, issue.message))
    line.append("  ")
    line.append(f"{issue.engine.value}/{issue.rule_id or MISSING_RULE_PLACEHOLDER}", style="dim" if color else None)
    return line


def summary_line(issues: Sequence[Issue]) -> str:
    """Return the closing ``N problems`` summary."""

    errors = sum(1 for issue in issues if issue.severity is Severity.ERROR)
    warnings = len(issues) - errors
    return f"{len(issues)} problem(s) ({errors} error(s), {warnings} warning(s))"


def render_stylish(issues: Iterable[Issue], console: Console, *, color: bool = True) -> None:
    """Print ``issues`` grouped by file in the stylish layout."""

    ordered = sorted(issues, key=lambda issue: (issue.file, issue.line, issue.col))
    if not ordered:
        return
    width = max(len(f"{issue.line}{LOCATION_SEPARATOR}{issue.col}") for issue in ordered)
    for file, group in groupby(ordered, key=lambda issue: issue.file):
        console.print()
        console.print(Text(file, style="underline" if color else ""))
        for issue in group:
            console.print(format_issue_line(issue, width, color=color))
    console.print()
    summary = Text(summary_line(ordered))
    if color:
        summary.stylize("bold red" if any(i.severity is Severity.ERROR for i in ordered) else "bold yellow")
    console.print(summary)


def report_to_json(report: QualityReport) -> str:
    """Return ``report`` serialised as indented JSON."""

    payload = report.model_dump(mode="json")
    return json.dumps(payload, indent=2, sort_keys=False)


__all__ = [
    "clean_message",
    "format_issue_line",
    "render_stylish",
    "report_to_json",
    "severity_color",
    "summary_line",
]
