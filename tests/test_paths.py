# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for path helpers and atomic writes."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

import pytest

from pyqc.errors import FileWriteError
from pyqc.paths import atomic_write_text, find_upward, is_python_file, iter_python_files, resolve_path


def test_resolve_path_uses_base_dir(tmp_path: Path) -> None:
    assert resolve_path("pkg/a.py", base_dir=tmp_path) == (tmp_path / "pkg" / "a.py").resolve()
    assert resolve_path(tmp_path / "x.py") == (tmp_path / "x.py").resolve()


def test_find_upward_prefers_nearest_and_name_order(tmp_path: Path) -> None:
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    (tmp_path / "mypy.ini").write_text("[mypy]\n", encoding="utf-8")
    (tmp_path / "a" / "setup.cfg").write_text("[metadata]\n", encoding="utf-8")
    (tmp_path / "a" / "mypy.ini").write_text("[mypy]\n", encoding="utf-8")
    source = nested / "mod.py"
    source.write_text("", encoding="utf-8")

    assert find_upward(source, ("mypy.ini", "setup.cfg")) == tmp_path / "a" / "mypy.ini"
    assert find_upward(nested, ("setup.cfg", "mypy.ini")) == tmp_path / "a" / "setup.cfg"
    assert find_upward(nested, ("setup.cfg",), accept=lambda path: "mypy" in path.read_text()) is None


def test_iter_python_files_skips_excluded_directories(tmp_path: Path) -> None:
    for relative in ("pkg/a.py", "pkg/b.pyi", "pkg/notes.txt", ".venv/lib/x.py", "build/y.py", "demo.egg-info/z.py"):
        target = tmp_path / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text("", encoding="utf-8")

    found = [path.relative_to(tmp_path).as_posix() for path in iter_python_files(tmp_path)]

    assert found == ["pkg/a.py", "pkg/b.pyi"]


@pytest.mark.parametrize(("name", "expected"), [("a.py", True), ("a.pyi", True), ("a.pyw", False), ("README", False)])
def test_is_python_file(name: str, expected: bool) -> None:
    assert is_python_file(name) is expected


def test_atomic_write_replaces_content_and_keeps_mode(tmp_path: Path) -> None:
    target = tmp_path / "a.py"
    target.write_text("old\n", encoding="utf-8")
    os.chmod(target, 0o640)

    atomic_write_text(target, "new\r\nline\n")

    assert target.read_bytes() == b"new\r\nline\n"
    assert target.stat().st_mode & 0o777 == 0o640
    assert sorted(path.name for path in tmp_path.iterdir()) == ["a.py"]


def test_atomic_write_failure_cleans_up(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    target = tmp_path / "a.py"
    target.write_text("old\n", encoding="utf-8")

    def _refuse(src: object, dst: object) -> None:
        raise PermissionError("read-only")

    monkeypatch.setattr(os, "replace", _refuse)

    with pytest.raises(FileWriteError, match="Failed to write"):
        atomic_write_text(target, "new\n")

    assert target.read_text(encoding="utf-8") == "old\n"
    assert sorted(path.name for path in tmp_path.iterdir()) == ["a.py"]


def test_atomic_write_wraps_temp_file_creation_errors(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    target = tmp_path / "a.py"
    target.write_text("old\n", encoding="utf-8")

    def _refuse(*args: object, **kwargs: object) -> tuple[int, str]:
        raise PermissionError("directory is read-only")

    monkeypatch.setattr(tempfile, "mkstemp", _refuse)

    with pytest.raises(FileWriteError, match="Failed to write") as caught:
        atomic_write_text(target, "new\n")

    assert isinstance(caught.value.__cause__, PermissionError)
    assert target.read_text(encoding="utf-8") == "old\n"
