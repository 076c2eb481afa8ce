# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Enforcement verdicts and the exit code manager."""

from __future__ import annotations

from .exit_codes import (
    FALLBACK_MESSAGE,
    ExitCode,
    ExitDecision,
    determine_exit_code,
    determine_parse_error_exit_code,
)
from .models import EnforcementResult, ErrorClassification, describe_issue, enforce

__all__ = [
    "FALLBACK_MESSAGE",
    "EnforcementResult",
    "ErrorClassification",
    "ExitCode",
    "ExitDecision",
    "describe_issue",
    "determine_exit_code",
    "determine_parse_error_exit_code",
    "enforce",
]
