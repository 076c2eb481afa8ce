# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from pyqc.console import get_console_manager
from pyqc.engines.process import ProcessResult
from pyqc.models import EngineName, Issue
from pyqc.severity import Severity


@dataclass
class RecordedCall:
    argv: tuple[str, ...]
    cwd: Path | None
    stdin_text: str | None


@dataclass
class FakeRunner:
    """Async stand-in for :func:`pyqc.engines.process.run_process`."""

    responder: Callable[[RecordedCall], ProcessResult] | None = None
    calls: list[RecordedCall] = field(default_factory=list)

    async def __call__(
        self,
        argv: Sequence[str],
        *,
        cwd: Path | None = None,
        stdin_text: str | None = None,
        env: object = None,
    ) -> ProcessResult:
        call = RecordedCall(tuple(argv), cwd, stdin_text)
        self.calls.append(call)
        if self.responder is None:
            return ProcessResult(argv=call.argv, returncode=0, stdout="", stderr="")
        return self.responder(call)


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def make_issue() -> Callable[..., Issue]:
    """Return a factory building lint issues with overridable fields."""

    def _make(
        rule_id: str | None = "F401",
        file: str = "/project/src/app/service.py",
        *,
        engine: EngineName = EngineName.LINT,
        severity: Severity = Severity.ERROR,
        line: int = 1,
        col: int = 1,
        message: str = "problem",
    ) -> Issue:
        return Issue(
            engine=engine,
            severity=severity,
            rule_id=rule_id,
            file=file,
            line=line,
            col=col,
            message=message,
        )

    return _make


@pytest.fixture
def mypy_project(tmp_path: Path) -> Path:
    """Create a small project with a ``mypy.ini`` and two modules."""

    root = tmp_path / "project"
    package = root / "pkg"
    package.mkdir(parents=True)
    (root / "mypy.ini").write_text("[mypy]\nstrict = True\n", encoding="utf-8")
    (package / "__init__.py").write_text("", encoding="utf-8")
    (package / "mod.py").write_text("def add(a: int, b: int) -> int:\n    return a + b\n", encoding="utf-8")
    return root


@pytest.fixture(autouse=True)
def _fresh_consoles() -> None:
    get_console_manager().clear()
