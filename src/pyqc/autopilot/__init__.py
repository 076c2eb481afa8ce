# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Rule classification and auto-fix decisions."""

from __future__ import annotations

from .context import ContextCheck, check_context, is_dev_file, is_test_file, is_ui_file
from .decision import (
    Autopilot,
    Decision,
    DecisionAction,
    ErrorTier,
    Guidance,
    TierClassification,
    guidance_for,
)
from .rules import (
    ALWAYS_SAFE,
    CONTEXT_DEPENDENT,
    NEVER_AUTO,
    RuleCategory,
    RuleClassification,
    always_safe_rules,
    classify_rule,
    context_dependent_rules,
    never_auto_rules,
)

__all__ = [
    "ALWAYS_SAFE",
    "CONTEXT_DEPENDENT",
    "NEVER_AUTO",
    "Autopilot",
    "ContextCheck",
    "Decision",
    "DecisionAction",
    "ErrorTier",
    "Guidance",
    "RuleCategory",
    "RuleClassification",
    "TierClassification",
    "always_safe_rules",
    "check_context",
    "classify_rule",
    "context_dependent_rules",
    "guidance_for",
    "is_dev_file",
    "is_test_file",
    "is_ui_file",
    "never_auto_rules",
]
