# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the post-write automation hook."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from pathlib import Path

import pytest

from pyqc.aggregator import Aggregator
from pyqc.config import QualityConfig
from pyqc.engines.base import EngineConfig
from pyqc.errors import HookParseError, ToolMissingError
from pyqc.hook import QualityHook, emit_exit_decision, parse_payload
from pyqc.models import CheckerResult, EngineName, Issue


class ScriptedEngine:
    """Engine whose fixing runs clear only the requested, fixable rules."""

    def __init__(
        self,
        name: EngineName,
        issues: tuple[Issue, ...] = (),
        *,
        unfixable: frozenset[str] = frozenset(),
        delay: float = 0.0,
    ) -> None:
        self.name = name
        self.issues = issues
        self.unfixable = unfixable
        self.delay = delay
        self.fix_rules: list[frozenset[str] | None] = []

    @property
    def fix_runs(self) -> int:
        return len(self.fix_rules)

    def _clears(self, issue: Issue, rules: frozenset[str] | None) -> bool:
        if issue.rule_id in self.unfixable:
            return False
        return rules is None or issue.rule_id in rules

    async def check(self, config: EngineConfig) -> CheckerResult:
        if self.delay:
            await asyncio.sleep(self.delay)
        if config.fix:
            self.fix_rules.append(config.rules)
            kept = tuple(issue for issue in self.issues if not self._clears(issue, config.rules))
            fixed = len(self.issues) - len(kept)
            self.issues = kept
            return CheckerResult(issues=kept, fixed_count=fixed)
        return CheckerResult(issues=self.issues)


class MissingToolEngine:
    name = EngineName.TYPE_CHECK

    async def check(self, config: EngineConfig) -> CheckerResult:
        raise ToolMissingError("mypy")


def _payload(file_path: str, *, tool_name: str = "Write", cwd: str | None = None) -> str:
    document: dict[str, object] = {"tool_name": tool_name, "tool_input": {"file_path": file_path}}
    if cwd is not None:
        document["cwd"] = cwd
    return json.dumps(document)


def _hook(tmp_path: Path, **engines: ScriptedEngine | MissingToolEngine) -> QualityHook:
    config = QualityConfig(cache_dir=tmp_path / "cache")
    registry = {engine.name: engine for engine in engines.values()}
    return QualityHook(config, aggregator=Aggregator(registry))


def test_parse_payload_accepts_path_alias() -> None:
    payload = parse_payload(json.dumps({"tool_name": "Edit", "tool_input": {"path": "src/a.py"}, "cwd": "/work"}))

    assert payload.tool_name == "Edit"
    assert payload.target_file == Path("/work/src/a.py")


@pytest.mark.parametrize("text", ["", "   ", "{not json", "[]", '{"tool_input": {}}'])
def test_parse_payload_rejects_malformed_input(text: str) -> None:
    with pytest.raises(HookParseError):
        parse_payload(text)


@pytest.mark.asyncio
async def test_malformed_payload_exits_one(tmp_path: Path) -> None:
    decision = await _hook(tmp_path).run("{oops")

    assert decision.exit_code == 1
    assert decision.message is not None and decision.message.startswith("Hook parse error")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("tool_name", "file_path"),
    [("Read", "/work/a.py"), ("Write", "/work/README.md"), ("Bash", "")],
)
async def test_irrelevant_invocations_are_silent(tmp_path: Path, tool_name: str, file_path: str) -> None:
    lint = ScriptedEngine(EngineName.LINT)
    decision = await _hook(tmp_path, lint=lint).run(_payload(file_path, tool_name=tool_name))

    assert decision.exit_code == 0
    assert not decision.should_output


@pytest.mark.asyncio
async def test_disabled_hook_is_silent(tmp_path: Path, make_issue: Callable[..., Issue]) -> None:
    lint = ScriptedEngine(EngineName.LINT, (make_issue("F821"),))
    config = QualityConfig(cache_dir=tmp_path / "cache", disabled=True)
    hook = QualityHook(config, aggregator=Aggregator({EngineName.LINT: lint}))

    decision = await hook.run(_payload(str(tmp_path / "a.py")))

    assert decision.exit_code == 0
    assert not decision.should_output


@pytest.mark.asyncio
async def test_clean_file_passes_silently(tmp_path: Path) -> None:
    decision = await _hook(tmp_path, lint=ScriptedEngine(EngineName.LINT)).run(_payload(str(tmp_path / "a.py")))

    assert decision.exit_code == 0
    assert not decision.should_output


@pytest.mark.asyncio
async def test_safe_issues_are_fixed_silently(tmp_path: Path, make_issue: Callable[..., Issue]) -> None:
    target = str(tmp_path / "src" / "a.py")
    lint = ScriptedEngine(EngineName.LINT, (make_issue("I001", target),))
    fmt = ScriptedEngine(EngineName.FORMAT, (make_issue("black/format", target, engine=EngineName.FORMAT),))

    decision = await _hook(tmp_path, lint=lint, fmt=fmt).run(_payload(target))

    assert decision.exit_code == 0
    assert not decision.should_output
    assert lint.fix_runs == 1
    assert fmt.fix_runs == 1


@pytest.mark.asyncio
async def test_unfixable_issues_block(tmp_path: Path, make_issue: Callable[..., Issue]) -> None:
    target = str(tmp_path / "src" / "a.py")
    lint = ScriptedEngine(EngineName.LINT, (make_issue("F821", target, message="Undefined name `foo`"),))

    decision = await _hook(tmp_path, lint=lint).run(_payload(target))

    assert decision.exit_code == 2
    assert decision.use_stderr
    assert decision.message is not None and "Undefined name `foo`" in decision.message
    assert lint.fix_runs == 0


@pytest.mark.asyncio
async def test_missing_tool_is_hook_error(tmp_path: Path) -> None:
    decision = await _hook(tmp_path, mypy=MissingToolEngine()).run(_payload(str(tmp_path / "a.py")))

    assert decision.exit_code == 1
    assert decision.message == "Hook error: mypy is not available"


@pytest.mark.asyncio
async def test_autofix_disabled_reports_fixable_issues(tmp_path: Path, make_issue: Callable[..., Issue]) -> None:
    target = str(tmp_path / "a.py")
    lint = ScriptedEngine(EngineName.LINT, (make_issue("I001", target),))
    config = QualityConfig(cache_dir=tmp_path / "cache", autofix=False)

    decision = await QualityHook(config, aggregator=Aggregator({EngineName.LINT: lint})).run(_payload(target))

    assert decision.exit_code == 2
    assert lint.fix_runs == 0


@pytest.mark.asyncio
async def test_fix_that_leaves_issue_in_place_blocks(tmp_path: Path, make_issue: Callable[..., Issue]) -> None:
    target = str(tmp_path / "src" / "service.py")
    lint = ScriptedEngine(
        EngineName.LINT,
        (make_issue("T201", target, message="`print` found"), make_issue("I001", target, line=2)),
        unfixable=frozenset({"T201"}),
    )

    decision = await _hook(tmp_path, lint=lint).run(_payload(target))

    assert decision.exit_code == 2
    assert decision.message is not None
    assert "T201" in decision.message
    assert "1 issue(s) were fixed automatically" in decision.message
    assert lint.fix_rules == [frozenset({"T201", "I001"})]


@pytest.mark.asyncio
async def test_fix_is_limited_to_safe_rules(tmp_path: Path, make_issue: Callable[..., Issue]) -> None:
    target = str(tmp_path / "src" / "a.py")
    lint = ScriptedEngine(
        EngineName.LINT,
        (make_issue("I001", target), make_issue("E713", target, line=4, message="Test for membership")),
    )
    fmt = ScriptedEngine(EngineName.FORMAT)

    decision = await _hook(tmp_path, lint=lint, fmt=fmt).run(_payload(target))

    assert lint.fix_rules == [frozenset({"I001"})]
    assert fmt.fix_runs == 0
    assert [issue.rule_id for issue in lint.issues] == ["E713"]
    assert decision.exit_code == 2
    assert decision.message is not None and "E713" in decision.message


@pytest.mark.asyncio
async def test_format_fix_runs_only_for_format_issues(tmp_path: Path, make_issue: Callable[..., Issue]) -> None:
    target = str(tmp_path / "src" / "a.py")
    lint = ScriptedEngine(EngineName.LINT)
    fmt = ScriptedEngine(EngineName.FORMAT, (make_issue("black/format", target, engine=EngineName.FORMAT),))

    decision = await _hook(tmp_path, lint=lint, fmt=fmt).run(_payload(target))

    assert decision.exit_code == 0
    assert lint.fix_runs == 0
    assert fmt.fix_rules == [frozenset({"black/format"})]


@pytest.mark.asyncio
async def test_timed_out_check_is_hook_error(tmp_path: Path) -> None:
    lint = ScriptedEngine(EngineName.LINT)
    mypy = ScriptedEngine(EngineName.TYPE_CHECK, delay=5.0)
    config = QualityConfig(cache_dir=tmp_path / "cache", timeout_s=0.05)
    hook = QualityHook(config, aggregator=Aggregator({EngineName.LINT: lint, EngineName.TYPE_CHECK: mypy}))

    decision = await hook.run(_payload(str(tmp_path / "a.py")))

    assert decision.exit_code == 1
    assert decision.should_output
    assert decision.message is not None and "timed out" in decision.message


def test_emit_exit_decision_writes_to_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    from pyqc.enforcement import ExitDecision

    emit_exit_decision(ExitDecision(2, True, True, "blocked [F821]"))
    emit_exit_decision(ExitDecision(0, False, False, "hidden"))

    captured = capsys.readouterr()
    assert "blocked [F821]" in captured.err
    assert "hidden" not in captured.out + captured.err
