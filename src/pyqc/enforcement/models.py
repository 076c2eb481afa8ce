# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Turn autopilot decisions into pass/block enforcement verdicts."""

from __future__ import annotations

from typing import Final

from pydantic import BaseModel, ConfigDict, Field

from ..autopilot import Autopilot, Decision, DecisionAction, ErrorTier
from ..autopilot.decision import file_of, rule_of
from .exit_codes import ExitCode

MAX_LISTED_ISSUES: Final[int] = 20


class ErrorClassification(BaseModel):
    """Aggregate counts behind an enforcement verdict."""

    model_config = ConfigDict(frozen=True)

    total: int = Field(default=0, ge=0)
    auto_fixed: int = Field(default=0, ge=0)
    fixable: int = Field(default=0, ge=0)
    unfixable: int = Field(default=0, ge=0)

    @property
    def has_issues(self) -> bool:
        """Return ``True`` when any issue is left for someone to act on."""

        return self.fixable + self.unfixable > 0


class EnforcementResult(BaseModel):
    """Pass/block verdict handed to the exit code manager."""

    model_config = ConfigDict(frozen=True)

    blocked: bool = False
    exit_code: int = ExitCode.SUCCESS
    message: str | None = None
    classification: ErrorClassification | None = None
    silent: bool | None = None


def describe_issue(issue: object) -> str:
    """Return a one-line description of ``issue`` tolerant of partial entries."""

    location = file_of(issue) or "<unknown>"
    line = getattr(issue, "line", None)
    col = getattr(issue, "col", None)
    if isinstance(line, int) and isinstance(col, int):
        location = f"{location}:{line}:{col}"
    rule = rule_of(issue)
    message = getattr(issue, "message", None)
    if message is None and isinstance(issue, dict):
        message = issue.get("message")
    parts = [location]
    if rule:
        parts.append(f"[{rule}]")
    parts.append(str(message) if message else "issue")
    return " ".join(parts)


def _blocked_message(decision: Decision, autopilot: Autopilot) -> str:
    remaining = decision.issues
    lines = [f"Quality check blocked: {len(remaining)} issue(s) need attention"]
    for issue in remaining[:MAX_LISTED_ISSUES]:
        lines.append(f"  {describe_issue(issue)}")
        tier = autopilot.classify_error(issue)
        if tier.tier is ErrorTier.GUIDED and tier.instructions:
            lines.append(f"    fix: {tier.instructions}")
        elif tier.guidance is not None:
            lines.append(f"    note: {tier.guidance.next_steps}")
    hidden = len(remaining) - MAX_LISTED_ISSUES
    if hidden > 0:
        lines.append(f"  ... and {hidden} more")
    if decision.fixes:
        lines.append(f"{len(decision.fixes)} issue(s) were fixed automatically")
    return "\n".join(lines)


def enforce(decision: Decision, *, fixed: bool, autopilot: Autopilot | None = None) -> EnforcementResult:
    """Return the enforcement verdict for ``decision``.

    Args:
        decision: Verdict produced by :meth:`Autopilot.decide`.
        fixed: Whether the safe fixes in ``decision.fixes`` were applied.
        autopilot: Autopilot used to attach guidance to blocked issues.

    Returns:
        EnforcementResult: ``silent`` when nothing needs attention, ``blocked``
        when issues remain that cannot be fixed automatically.
    """

    pilot = autopilot or Autopilot()
    fix_count = len(decision.fixes)
    classification = ErrorClassification(
        total=fix_count + len(decision.issues),
        auto_fixed=fix_count if fixed else 0,
        fixable=0 if fixed else fix_count,
        unfixable=len(decision.issues),
    )
    if decision.action is DecisionAction.CONTINUE:
        return EnforcementResult(silent=True, classification=classification)
    if decision.action is DecisionAction.FIX_SILENTLY:
        if fixed:
            return EnforcementResult(silent=True, classification=classification)
        return EnforcementResult(
            exit_code=ExitCode.BLOCKED,
            silent=False,
            classification=classification,
            message=f"{fix_count} auto-fixable issue(s) found; re-run with fixes enabled",
        )
    return EnforcementResult(
        blocked=True,
        exit_code=ExitCode.BLOCKED,
        silent=False,
        classification=classification,
        message=_blocked_message(decision, pilot),
    )


__all__ = ["EnforcementResult", "ErrorClassification", "describe_issue", "enforce"]
