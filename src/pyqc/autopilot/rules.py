# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Static rule tables and rule classification for the autopilot."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final


class RuleCategory(str, Enum):
    """Safety tier of a rule identifier."""

    ALWAYS_SAFE = "ALWAYS_SAFE"
    CONTEXT_DEPENDENT = "CONTEXT_DEPENDENT"
    NEVER_AUTO = "NEVER_AUTO"


@dataclass(frozen=True, slots=True)
class RuleClassification:
    """Judgement about a single rule identifier."""

    rule_id: str
    category: RuleCategory
    confidence: float
    auto_fixable: bool


ALWAYS_SAFE: Final[frozenset[str]] = frozenset(
    {
        # formatting and whitespace
        "black/format",
        "E703",
        "W291",
        "W292",
        "W293",
        "W605",
        # import organisation
        "I001",
        "I002",
        "F401",
        "UP010",
        # quotes and commas
        "Q000",
        "Q001",
        "Q002",
        "Q003",
        "COM812",
        "COM819",
        # equivalent modernisations
        "UP004",
        "UP006",
        "UP007",
        "UP009",
        "UP015",
        "UP018",
        "UP025",
        "UP032",
        "UP034",
        "UP035",
        "UP037",
        "UP039",
        # dead code
        "F541",
        "PIE790",
        "RSE102",
        # simplification
        "C401",
        "C402",
        "C403",
        "C404",
        "C405",
        "C408",
        "C409",
        "C410",
        "C411",
        "C414",
        "C416",
        "SIM118",
        "SIM300",
    }
)

CONTEXT_DEPENDENT: Final[frozenset[str]] = frozenset(
    {
        "T100",
        "T201",
        "T203",
        "RUF001",
        "UP031",
    }
)

NEVER_AUTO: Final[frozenset[str]] = frozenset(
    {
        # unresolved references and redefinitions
        "F821",
        "F811",
        "F841",
        # semantics the fixer cannot judge
        "B006",
        "B018",
        "E722",
        # complexity
        "C901",
        "PLR0911",
        "PLR0912",
        "PLR0913",
        "PLR0915",
        "PLR1702",
        # security
        "S102",
        "S105",
        "S307",
        "S602",
        "S608",
        # type safety
        "ANN401",
        "arg-type",
        "assignment",
        "attr-defined",
        "call-arg",
        "import-not-found",
        "import-untyped",
        "index",
        "misc",
        "name-defined",
        "no-untyped-def",
        "operator",
        "override",
        "return-value",
        "syntax",
        "union-attr",
        "unreachable",
        "var-annotated",
    }
)

KNOWN_CONFIDENCE: Final[float] = 1.0
CONTEXT_CONFIDENCE: Final[float] = 0.8
UNKNOWN_CONFIDENCE: Final[float] = 0.5


def classify_rule(rule_id: str) -> RuleClassification:
    """Return the safety tier of ``rule_id``.

    Unknown identifiers are never auto-applied and carry reduced confidence.
    """

    if rule_id in ALWAYS_SAFE:
        return RuleClassification(rule_id, RuleCategory.ALWAYS_SAFE, KNOWN_CONFIDENCE, True)
    if rule_id in CONTEXT_DEPENDENT:
        return RuleClassification(rule_id, RuleCategory.CONTEXT_DEPENDENT, CONTEXT_CONFIDENCE, False)
    if rule_id in NEVER_AUTO:
        return RuleClassification(rule_id, RuleCategory.NEVER_AUTO, KNOWN_CONFIDENCE, False)
    return RuleClassification(rule_id, RuleCategory.NEVER_AUTO, UNKNOWN_CONFIDENCE, False)


def always_safe_rules() -> set[str]:
    """Return a mutable copy of the always-safe table."""

    return set(ALWAYS_SAFE)


def context_dependent_rules() -> set[str]:
    """Return a mutable copy of the context-dependent table."""

    return set(CONTEXT_DEPENDENT)


def never_auto_rules() -> set[str]:
    """Return a mutable copy of the never-auto table."""

    return set(NEVER_AUTO)


__all__ = [
    "ALWAYS_SAFE",
    "CONTEXT_DEPENDENT",
    "NEVER_AUTO",
    "RuleCategory",
    "RuleClassification",
    "always_safe_rules",
    "classify_rule",
    "context_dependent_rules",
    "never_auto_rules",
]
