# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Post-write automation hook: check the edited file and decide the exit code."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .aggregator import Aggregator, QualityReport, default_engines
from .autopilot import Autopilot, Decision, DecisionAction
from .autopilot.decision import file_of, rule_of
from .config import QualityConfig
from .console import get_console_manager
from .enforcement import (
    EnforcementResult,
    ExitDecision,
    determine_exit_code,
    determine_parse_error_exit_code,
    enforce,
)
from .engines.format import FORMAT_RULE
from .errors import HookParseError, OperationTimeoutError
from .models import EngineName
from .paths import is_python_file, resolve_path

LOGGER = logging.getLogger(__name__)

WRITE_TOOLS: Final[frozenset[str]] = frozenset({"Write", "Edit", "MultiEdit"})


class ToolInput(BaseModel):
    """Arguments of the editing tool that triggered the hook."""

    model_config = ConfigDict(extra="allow", frozen=True)

    file_path: str | None = None
    path: str | None = None


class HookPayload(BaseModel):
    """JSON document received on the hook's standard input."""

    model_config = ConfigDict(extra="allow", frozen=True)

    tool_name: str
    tool_input: ToolInput = Field(default_factory=ToolInput)
    session_id: str | None = None
    cwd: str | None = None

    @property
    def working_dir(self) -> Path:
        """Return the directory the editing session ran in."""

        return resolve_path(self.cwd) if self.cwd else Path.cwd()

    @property
    def target_file(self) -> Path | None:
        """Return the absolute path of the edited file, if the payload names one."""

        raw = self.tool_input.file_path or self.tool_input.path
        if not raw or not raw.strip():
            return None
        return resolve_path(raw, base_dir=self.working_dir)


def parse_payload(text: str) -> HookPayload:
    """Decode and validate the hook payload.

    Raises:
        HookParseError: If ``text`` is empty, not JSON, or not a valid payload.
    """

    if not text.strip():
        raise HookParseError("empty hook payload")
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise HookParseError(f"invalid JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})") from exc
    if not isinstance(raw, dict):
        raise HookParseError("payload must be a JSON object")
    try:
        return HookPayload.model_validate(raw)
    except ValidationError as exc:
        raise HookParseError(f"invalid payload: {exc.errors()[0]['msg']}") from exc


def _silent() -> ExitDecision:
    return determine_exit_code(EnforcementResult(silent=True))


class QualityHook:
    """Run the aggregator, autopilot and enforcement for one hook invocation."""

    def __init__(
        self,
        config: QualityConfig,
        *,
        aggregator: Aggregator | None = None,
        autopilot: Autopilot | None = None,
    ) -> None:
        self._config = config
        self._aggregator = aggregator or Aggregator(default_engines(config.cache_dir))
        self._autopilot = autopilot or Autopilot()

    async def run(self, stdin_text: str) -> ExitDecision:
        """Return the exit decision for the payload in ``stdin_text``."""

        try:
            payload = parse_payload(stdin_text)
        except HookParseError as exc:
            return determine_parse_error_exit_code(exc)
        if self._config.disabled:
            LOGGER.debug("quality hook disabled by configuration")
            return _silent()
        target = payload.target_file
        if payload.tool_name not in WRITE_TOOLS or target is None or not is_python_file(target):
            return _silent()
        try:
            result = await self._evaluate(target, payload.working_dir)
        except Exception as exc:  # noqa: BLE001 - the hook channel must report, not crash
            LOGGER.debug("quality hook failed", exc_info=exc)
            return determine_exit_code(None, exc)
        return determine_exit_code(result)

    async def _check(self, target: Path, cwd: Path, **options: Any) -> QualityReport:
        config = self._config
        report = await self._aggregator.check(
            [target],
            cache_dir=config.cache_dir,
            cwd=cwd,
            timeout_s=config.timeout_s,
            **options,
        )
        if report.pending:
            raise OperationTimeoutError(config.timeout_s or 0.0, "quality check")
        return report

    async def _evaluate(self, target: Path, cwd: Path) -> EnforcementResult:
        config = self._config
        pilot = self._autopilot
        report = await self._check(target, cwd, engines=config.engines, parallel=config.parallel)
        decision = pilot.decide(report)
        if not decision.fixes or not config.autofix:
            return enforce(decision, fixed=False, autopilot=pilot)

        requested = {rule for rule in map(rule_of, decision.fixes) if rule is not None}
        wanted = {EngineName.LINT: bool(requested - {FORMAT_RULE}), EngineName.FORMAT: FORMAT_RULE in requested}
        fixers = [name for name in config.engines if wanted.get(name, False)]
        if not fixers:
            return enforce(decision, fixed=False, autopilot=pilot)
        await self._check(target, cwd, engines=fixers, fix=True, parallel=False, rules=requested)

        # Unsafe-only ruff fixes leave the issue in place; only a clean re-check counts.
        outcome = pilot.decide(await self._check(target, cwd, engines=config.engines, parallel=config.parallel))
        if outcome.action is DecisionAction.CONTINUE:
            return enforce(decision, fixed=True, autopilot=pilot)
        remaining = (*outcome.issues, *outcome.fixes)
        leftover = {(rule_of(issue), file_of(issue)) for issue in remaining}
        applied = tuple(issue for issue in decision.fixes if (rule_of(issue), file_of(issue)) not in leftover)
        LOGGER.debug("%d of %d safe fix(es) did not apply", len(decision.fixes) - len(applied), len(decision.fixes))
        verified = Decision(
            DecisionAction.FIX_AND_REPORT if applied else DecisionAction.REPORT_ONLY,
            outcome.confidence,
            fixes=applied,
            issues=remaining,
        )
        return enforce(verified, fixed=True, autopilot=pilot)


def emit_exit_decision(decision: ExitDecision) -> None:
    """Print the decision's message on the channel it asks for."""

    if not decision.should_output or not decision.message:
        return
    console = get_console_manager().get(color=False, emoji=False, stderr=decision.use_stderr)
    console.print(decision.message, markup=False)


__all__ = [
    "HookPayload",
    "QualityHook",
    "ToolInput",
    "WRITE_TOOLS",
    "emit_exit_decision",
    "parse_payload",
]
