# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Helpers for reasoning about filesystem paths and safe writes."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Callable, Iterable, Iterator
from os import PathLike
from pathlib import Path
from typing import Final

from .errors import FileWriteError

_Pathish = str | PathLike[str] | Path

DEFAULT_CACHE_DIRNAME: Final[str] = "pyqc-cache"
PYTHON_SUFFIXES: Final[frozenset[str]] = frozenset({".py", ".pyi"})
EXCLUDED_DIRS: Final[frozenset[str]] = frozenset(
    {
        ".git",
        ".hg",
        ".mypy_cache",
        ".nox",
        ".pytest_cache",
        ".ruff_cache",
        ".tox",
        ".venv",
        "__pycache__",
        "build",
        "dist",
        "node_modules",
        "site-packages",
        "venv",
    }
)


def resolve_path(path: _Pathish, *, base_dir: _Pathish | None = None) -> Path:
    """Return ``path`` as an absolute path, resolving relative inputs against ``base_dir``.

    Args:
        path: Filesystem path supplied by the caller.
        base_dir: Directory used for relative paths. Defaults to ``Path.cwd()``.

    Returns:
        Path: Absolute, best-effort resolved path.
    """

    raw_path = Path(path).expanduser()
    base = Path.cwd() if base_dir is None else Path(base_dir).expanduser()
    candidate = raw_path if raw_path.is_absolute() else base / raw_path
    try:
        return candidate.resolve(strict=False)
    except (OSError, RuntimeError):
        return candidate.absolute()


def default_cache_dir() -> Path:
    """Return the default cache root derived from the OS temp directory."""

    return Path(tempfile.gettempdir()) / DEFAULT_CACHE_DIRNAME


def find_upward(
    start: Path,
    names: Iterable[str],
    *,
    accept: Callable[[Path], bool] | None = None,
) -> Path | None:
    """Return the nearest file named in ``names`` at or above ``start``.

    Args:
        start: Directory (or file, whose parent is used) where the search begins.
        names: Candidate filenames checked in priority order in each directory.
        accept: Optional predicate that must hold for a candidate to match.

    Returns:
        Path | None: Matching file, or ``None`` when the filesystem root is reached.
    """

    ordered = tuple(names)
    directory = start if start.is_dir() else start.parent
    for folder in (directory, *directory.parents):
        for name in ordered:
            candidate = folder / name
            if candidate.is_file() and (accept is None or accept(candidate)):
                return candidate
    return None


def iter_python_files(root: Path) -> Iterator[Path]:
    """Yield Python sources below ``root`` skipping caches, builds and virtualenvs."""

    for current, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if name not in EXCLUDED_DIRS and not name.endswith(".egg-info"))
        for filename in sorted(filenames):
            if Path(filename).suffix in PYTHON_SUFFIXES:
                yield Path(current) / filename


def is_python_file(path: _Pathish) -> bool:
    """Return ``True`` when ``path`` has a Python source suffix."""

    return Path(path).suffix in PYTHON_SUFFIXES


def atomic_write_text(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Write ``content`` to ``path`` via a temporary sibling and an atomic rename.

    A crash mid-write leaves either the old file or the new one, never a
    truncated mix. The temporary file is removed when the write fails.

    Args:
        path: Destination file.
        content: Full replacement text.
        encoding: Text encoding used for the write.

    Raises:
        FileWriteError: If the temporary file cannot be written or renamed.
    """

    temp_path: Path | None = None
    try:
        fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        temp_path = Path(temp_name)
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
        if path.exists():
            os.chmod(temp_path, path.stat().st_mode)
        os.replace(temp_path, path)
    except OSError as exc:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        raise FileWriteError(path, exc) from exc


__all__ = [
    "DEFAULT_CACHE_DIRNAME",
    "EXCLUDED_DIRS",
    "PYTHON_SUFFIXES",
    "atomic_write_text",
    "default_cache_dir",
    "find_upward",
    "is_python_file",
    "iter_python_files",
    "resolve_path",
]
