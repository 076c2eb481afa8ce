# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the in-process black format engine."""

from __future__ import annotations

from pathlib import Path
from types import ModuleType

import pytest

from pyqc.cancellation import CancellationTokenSource
from pyqc.engines.base import EngineConfig
from pyqc.engines.format import CONFIG_RULE, FORMAT_RULE, PARSE_RULE, FormatEngine, black_settings
from pyqc.errors import ToolMissingError
from pyqc.severity import Severity

UNFORMATTED = "x = {  'a':37,'b':42}\n"
FORMATTED = 'x = {"a": 37, "b": 42}\n'


@pytest.mark.asyncio
async def test_unformatted_file_is_reported(tmp_path: Path) -> None:
    target = tmp_path / "mod.py"
    target.write_text(UNFORMATTED, encoding="utf-8")

    result = await FormatEngine().check(EngineConfig.build([target]))

    assert len(result.issues) == 1
    issue = result.issues[0]
    assert issue.rule_id == FORMAT_RULE
    assert issue.severity is Severity.WARNING
    assert issue.suggestion
    assert result.fixable is True
    assert target.read_text(encoding="utf-8") == UNFORMATTED


@pytest.mark.asyncio
async def test_formatted_file_is_clean(tmp_path: Path) -> None:
    target = tmp_path / "mod.py"
    target.write_text(FORMATTED, encoding="utf-8")

    result = await FormatEngine().check(EngineConfig.build([target]))

    assert result.success
    assert result.fixable is False


@pytest.mark.asyncio
async def test_fix_rewrites_file(tmp_path: Path) -> None:
    target = tmp_path / "mod.py"
    target.write_text(UNFORMATTED, encoding="utf-8")

    result = await FormatEngine().check(EngineConfig.build([target], fix=True))

    assert result.success
    assert result.fixed_count == 1
    assert result.modified_files == (target.resolve(),)
    assert target.read_text(encoding="utf-8") == FORMATTED


@pytest.mark.asyncio
async def test_parse_error_is_error_issue(tmp_path: Path) -> None:
    target = tmp_path / "broken.py"
    target.write_text("def broken(:\n    pass\n", encoding="utf-8")

    result = await FormatEngine().check(EngineConfig.build([target], fix=True))

    assert len(result.issues) == 1
    assert result.issues[0].severity is Severity.ERROR
    assert result.issues[0].rule_id == PARSE_RULE
    assert result.fixed_count == 0


@pytest.mark.asyncio
async def test_missing_file_is_error_issue(tmp_path: Path) -> None:
    result = await FormatEngine().check(EngineConfig.build([tmp_path / "gone.py"]))

    assert len(result.issues) == 1
    assert result.issues[0].message.startswith("Failed to read file")


@pytest.mark.asyncio
async def test_non_python_files_are_skipped(tmp_path: Path) -> None:
    target = tmp_path / "notes.txt"
    target.write_text(UNFORMATTED, encoding="utf-8")

    result = await FormatEngine().check(EngineConfig.build([target]))

    assert result.success


@pytest.mark.asyncio
async def test_project_line_length_is_honoured(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text("[tool.black]\nline-length = 120\n", encoding="utf-8")
    target = tmp_path / "wide.py"
    args = ", ".join(f"argument_{index}" for index in range(8))
    target.write_text(f"result = compute({args})\n", encoding="utf-8")

    assert black_settings(tmp_path)["line-length"] == 120
    result = await FormatEngine().check(EngineConfig.build([target]))

    assert result.success


@pytest.mark.asyncio
async def test_cancelled_token_returns_empty(tmp_path: Path) -> None:
    target = tmp_path / "mod.py"
    target.write_text(UNFORMATTED, encoding="utf-8")
    source = CancellationTokenSource()
    source.cancel()

    result = await FormatEngine().check(EngineConfig.build([target], fix=True, token=source.token))

    assert result.success
    assert target.read_text(encoding="utf-8") == UNFORMATTED


@pytest.mark.asyncio
async def test_missing_black_raises(tmp_path: Path) -> None:
    def _loader() -> ModuleType:
        raise ToolMissingError("black", "No module named 'black'")

    with pytest.raises(ToolMissingError, match="black"):
        await FormatEngine(loader=_loader).check(EngineConfig.build([tmp_path / "mod.py"]))


@pytest.mark.asyncio
async def test_unknown_target_version_is_one_config_issue(tmp_path: Path) -> None:
    config_file = tmp_path / "pyproject.toml"
    config_file.write_text('[tool.black]\ntarget-version = ["py399"]\n', encoding="utf-8")
    targets = [tmp_path / "one.py", tmp_path / "two.py"]
    for target in targets:
        target.write_text(UNFORMATTED, encoding="utf-8")

    result = await FormatEngine().check(EngineConfig.build(targets))

    assert len(result.issues) == 1
    issue = result.issues[0]
    assert issue.rule_id == CONFIG_RULE
    assert issue.severity is Severity.ERROR
    assert Path(issue.file) == config_file.resolve()
    assert "py399" in issue.message


@pytest.mark.asyncio
async def test_fix_skipped_when_format_rule_not_requested(tmp_path: Path) -> None:
    target = tmp_path / "mod.py"
    target.write_text(UNFORMATTED, encoding="utf-8")

    result = await FormatEngine().check(EngineConfig.build([target], fix=True, rules={"I001"}))

    assert [issue.rule_id for issue in result.issues] == [FORMAT_RULE]
    assert result.fixed_count == 0
    assert target.read_text(encoding="utf-8") == UNFORMATTED
