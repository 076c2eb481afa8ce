# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Autopilot decision engine deciding which issues may be fixed silently."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Final

from .context import check_context
from .rules import CONTEXT_DEPENDENT, RuleCategory, classify_rule

LOGGER = logging.getLogger(__name__)

FULL_CONFIDENCE: Final[float] = 1.0
MIXED_CONFIDENCE: Final[float] = 0.8
MALFORMED_CONFIDENCE: Final[float] = 0.5


class DecisionAction(str, Enum):
    """Verdict returned by :meth:`Autopilot.decide`."""

    CONTINUE = "CONTINUE"
    FIX_SILENTLY = "FIX_SILENTLY"
    FIX_AND_REPORT = "FIX_AND_REPORT"
    REPORT_ONLY = "REPORT_ONLY"


@dataclass(frozen=True, slots=True)
class Decision:
    """Autopilot verdict for one aggregate result.

    ``fixes`` and ``issues`` partition the input issues. Entries are kept as
    received so malformed items can be reported back unchanged.
    """

    action: DecisionAction
    confidence: float
    fixes: tuple[object, ...] = field(default_factory=tuple)
    issues: tuple[object, ...] = field(default_factory=tuple)


class ErrorTier(str, Enum):
    """How a single issue should be handled downstream."""

    AUTO_FIXABLE = "auto-fixable"
    GUIDED = "guided"
    HUMAN_REQUIRED = "human-required"


@dataclass(frozen=True, slots=True)
class Guidance:
    """Explanation attached to issues that need a human or an agent."""

    explanation: str
    next_steps: str
    category: str


@dataclass(frozen=True, slots=True)
class TierClassification:
    """Per-issue handling tier with the guidance that goes with it."""

    tier: ErrorTier
    should_block: bool
    instructions: str | None = None
    guidance: Guidance | None = None


FIX_INSTRUCTIONS: Final[Mapping[str, str]] = {
    "F841": "Remove the unused variable or rename it with a leading underscore",
    "F811": "Remove the duplicate definition or rename one of them",
    "B006": "Default the argument to None and create the mutable value inside the function",
    "E722": "Catch the specific exception types instead of using a bare except",
    "ANN401": "Replace Any with a concrete type, a union, or a Protocol",
}

_GUIDANCE: Final[Mapping[str, Guidance]] = {
    "complexity": Guidance(
        "This function is too complex.",
        "Extract helper functions so each one has a single responsibility",
        "complexity",
    ),
    "security": Guidance(
        "Potential security vulnerability detected.",
        "Use a safe alternative or get a security review",
        "security",
    ),
    "type-safety": Guidance(
        "This issue affects type safety and could lead to runtime errors.",
        "Fix the types or narrow them with explicit checks",
        "type-safety",
    ),
    "performance": Guidance(
        "This issue may impact performance.",
        "Profile the code and measure before changing it",
        "performance",
    ),
}
_GENERAL_GUIDANCE: Final[Guidance] = Guidance(
    "This issue requires careful consideration and human judgement.",
    "Review the rule documentation before changing the code",
    "general",
)
_COMPLEXITY_RULES: Final[frozenset[str]] = frozenset({"C901", "PLR0911", "PLR0912", "PLR0913", "PLR0915", "PLR1702"})


def guidance_for(rule_id: str | None) -> Guidance:
    """Return explanatory guidance for a rule that needs human judgement."""

    if rule_id is None:
        return _GENERAL_GUIDANCE
    if rule_id in _COMPLEXITY_RULES:
        return _GUIDANCE["complexity"]
    if rule_id.startswith("S") and rule_id[1:].isdigit():
        return _GUIDANCE["security"]
    if rule_id.startswith("ANN") or not rule_id[:1].isupper():
        return _GUIDANCE["type-safety"]
    if rule_id.startswith("PERF"):
        return _GUIDANCE["performance"]
    return _GENERAL_GUIDANCE


def _field(issue: object, *names: str) -> object:
    if isinstance(issue, Mapping):
        for name in names:
            if name in issue:
                return issue[name]
        return None
    for name in names:
        value = getattr(issue, name, None)
        if value is not None:
            return value
    return None


def rule_of(issue: object) -> str | None:
    """Return the rule identifier of ``issue`` when it carries a usable one."""

    value = _field(issue, "rule_id", "ruleId", "rule")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def file_of(issue: object) -> str | None:
    """Return the file path of ``issue`` as a string when present."""

    value = _field(issue, "file", "file_path", "path")
    return str(value) if value else None


def _issues_of(result: object) -> list[object] | None:
    raw = _field(result, "issues") if result is not None else None
    if raw is None or isinstance(raw, (str, bytes, Mapping)):
        return None
    if not isinstance(raw, Iterable):
        return None
    return list(raw)


class Autopilot:
    """Classify issues by rule and file context and decide how to handle them."""

    def is_auto_fixable(self, issue: object) -> bool:
        """Return ``True`` when ``issue`` may be fixed without reporting it."""

        rule_id = rule_of(issue)
        if rule_id is None:
            return False
        classification = classify_rule(rule_id)
        if classification.category is RuleCategory.ALWAYS_SAFE:
            return True
        if rule_id in CONTEXT_DEPENDENT:
            return check_context(rule_id, file_of(issue)).should_auto_fix
        return False

    def decide(self, result: object) -> Decision:
        """Return the verdict for ``result``'s issues.

        ``result`` is anything exposing ``issues`` (a checker result, a report,
        or a mapping). Malformed input never raises; it yields ``CONTINUE``
        with reduced confidence.
        """

        issues = _issues_of(result)
        if issues is None:
            LOGGER.debug("autopilot received malformed result %r", type(result).__name__)
            return Decision(DecisionAction.CONTINUE, MALFORMED_CONFIDENCE)
        if not issues:
            return Decision(DecisionAction.CONTINUE, FULL_CONFIDENCE)

        fixes: list[object] = []
        remaining: list[object] = []
        for issue in issues:
            (fixes if self.is_auto_fixable(issue) else remaining).append(issue)

        if not remaining:
            return Decision(DecisionAction.FIX_SILENTLY, FULL_CONFIDENCE, fixes=tuple(fixes))
        if fixes:
            return Decision(DecisionAction.FIX_AND_REPORT, MIXED_CONFIDENCE, tuple(fixes), tuple(remaining))
        return Decision(DecisionAction.REPORT_ONLY, FULL_CONFIDENCE, issues=tuple(remaining))

    def classify_error(self, issue: object) -> TierClassification:
        """Return the handling tier for one issue."""

        if self.is_auto_fixable(issue):
            return TierClassification(ErrorTier.AUTO_FIXABLE, should_block=False)
        rule_id = rule_of(issue)
        if rule_id is not None and rule_id in FIX_INSTRUCTIONS:
            return TierClassification(ErrorTier.GUIDED, should_block=True, instructions=FIX_INSTRUCTIONS[rule_id])
        return TierClassification(ErrorTier.HUMAN_REQUIRED, should_block=True, guidance=guidance_for(rule_id))


__all__ = [
    "Autopilot",
    "Decision",
    "DecisionAction",
    "ErrorTier",
    "FIX_INSTRUCTIONS",
    "Guidance",
    "TierClassification",
    "file_of",
    "guidance_for",
    "rule_of",
]
