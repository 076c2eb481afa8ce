# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Map enforcement verdicts and hook failures onto process exit codes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from .models import EnforcementResult

FALLBACK_MESSAGE: Final[str] = "Quality check issues found"


class ExitCode(IntEnum):
    """Exit codes of the automation contract."""

    SUCCESS = 0
    TOOL_ERROR = 1
    BLOCKED = 2


@dataclass(frozen=True, slots=True)
class ExitDecision:
    """How the process should exit and whether it should print first."""

    exit_code: int
    should_output: bool
    use_stderr: bool
    message: str | None = None


def _has_quality_issues(result: EnforcementResult) -> bool:
    classification = result.classification
    return classification is not None and classification.has_issues


def determine_exit_code(result: EnforcementResult | None, hook_error: BaseException | None = None) -> ExitDecision:
    """Return the exit decision for an enforcement verdict.

    Rows are evaluated in order: hook failure, silent pass, blocked, quality
    issues left unblocked, clean pass, then a conservative fallback.
    """

    if hook_error is not None:
        return ExitDecision(ExitCode.TOOL_ERROR, True, True, f"Hook error: {hook_error}")
    if result is None:
        return ExitDecision(ExitCode.BLOCKED, True, True, FALLBACK_MESSAGE)
    if result.silent is True and not result.blocked:
        return ExitDecision(ExitCode.SUCCESS, False, False)
    if result.blocked:
        return ExitDecision(ExitCode.BLOCKED, True, True, result.message or FALLBACK_MESSAGE)
    if _has_quality_issues(result):
        return ExitDecision(ExitCode.BLOCKED, True, True, result.message or FALLBACK_MESSAGE)
    if result.exit_code == ExitCode.SUCCESS:
        return ExitDecision(ExitCode.SUCCESS, False, False)
    return ExitDecision(ExitCode.BLOCKED, True, True, result.message or FALLBACK_MESSAGE)


def determine_parse_error_exit_code(error: BaseException) -> ExitDecision:
    """Return the exit decision for malformed automation-hook input."""

    return ExitDecision(ExitCode.TOOL_ERROR, True, True, f"Hook parse error: {error}")


__all__ = [
    "FALLBACK_MESSAGE",
    "ExitCode",
    "ExitDecision",
    "determine_exit_code",
    "determine_parse_error_exit_code",
]
