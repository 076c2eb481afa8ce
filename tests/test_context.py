# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for autopilot file-context predicates."""

from __future__ import annotations

import pytest

from pyqc.autopilot import check_context, is_dev_file, is_test_file, is_ui_file


@pytest.mark.parametrize(
    "path",
    [
        "/repo/tests/test_models.py",
        "/repo/pkg/test/helpers.py",
        "/repo/src/__tests__/x.py",
        "/repo/src/test_utils.py",
        "/repo/src/models_test.py",
        "/repo/conftest.py",
        "/repo/src/app.spec.py",
        "C:\\repo\\tests\\unit.py",
    ],
)
def test_is_test_file(path: str) -> None:
    assert is_test_file(path)


@pytest.mark.parametrize("path", ["/repo/src/app.py", "/repo/src/testing_tools.py", "/repo/src/contest.py", "", None])
def test_is_not_test_file(path: str | None) -> None:
    assert not is_test_file(path)


def test_is_dev_file() -> None:
    assert is_dev_file("/repo/src/settings.dev.py")
    assert is_dev_file("/repo/src/debug_helpers.py")
    assert is_dev_file("/repo/scripts/dev/seed.py")
    assert is_dev_file("/repo/development/tools.py")
    assert not is_dev_file("/repo/src/app.py")
    assert not is_dev_file(None)


def test_is_ui_file() -> None:
    assert is_ui_file("/repo/launcher.pyw")
    assert is_ui_file("/repo/app/views/home.py")
    assert is_ui_file("/repo/app/widgets/button.py")
    assert is_ui_file("/repo/app/settings_view.py")
    assert is_ui_file("/repo/app/slider_widget.py")
    assert not is_ui_file("/repo/app/service.py")
    assert not is_ui_file("")


def test_debugger_is_always_fixable() -> None:
    for path in ("/repo/src/app.py", "/repo/tests/test_app.py", "/repo/src/debug.py"):
        assert check_context("T100", path).should_auto_fix


@pytest.mark.parametrize("rule_id", ["T201", "T203"])
def test_output_statements_depend_on_context(rule_id: str) -> None:
    assert check_context(rule_id, "/repo/src/app.py").should_auto_fix
    in_test = check_context(rule_id, "/repo/tests/test_app.py")
    assert not in_test.should_auto_fix
    assert "test/dev" in in_test.reason
    assert not check_context(rule_id, "/repo/src/debug_tools.py").should_auto_fix


def test_ambiguous_unicode_kept_in_ui_code() -> None:
    assert check_context("RUF001", "/repo/src/parser.py").should_auto_fix
    assert not check_context("RUF001", "/repo/app/views/home.py").should_auto_fix


def test_printf_formatting_always_fixable() -> None:
    assert check_context("UP031", "/repo/tests/test_app.py").should_auto_fix


def test_missing_path_or_unknown_rule_is_not_fixable() -> None:
    assert not check_context("T201", None).should_auto_fix
    assert check_context("T201", "").reason == "No file path provided"
    assert not check_context("F821", "/repo/src/app.py").should_auto_fix
