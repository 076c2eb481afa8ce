# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Engine adapters normalising mypy, ruff and black into pyqc results."""

from __future__ import annotations

from .base import Engine, EngineConfig, Stopwatch
from .format import FORMAT_RULE, FormatEngine
from .lint import LintEngine
from .process import ProcessResult, ProcessRunner, run_process
from .typecheck import BUILD_INFO_DIRNAME, EngineState, TypeCheckEngine, TypeCheckProgram

__all__ = [
    "BUILD_INFO_DIRNAME",
    "FORMAT_RULE",
    "Engine",
    "EngineConfig",
    "EngineState",
    "FormatEngine",
    "LintEngine",
    "ProcessResult",
    "ProcessRunner",
    "Stopwatch",
    "TypeCheckEngine",
    "TypeCheckProgram",
    "run_process",
]
