# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Discovery and parsing of the project configuration used by the type-check engine."""

from __future__ import annotations

import configparser
import tomllib
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from ..errors import ConfigurationError
from ..paths import find_upward, iter_python_files, resolve_path

MYPY_CONFIG_NAMES: Final[tuple[str, ...]] = ("mypy.ini", ".mypy.ini", "pyproject.toml", "setup.cfg")
_PYPROJECT: Final[str] = "pyproject.toml"
_SETUP_CFG: Final[str] = "setup.cfg"
_INI_SECTION: Final[str] = "mypy"
_GLOB_CHARS: Final[frozenset[str]] = frozenset("*?[")


@dataclass(frozen=True, slots=True)
class ProjectConfig:
    """Parsed mypy project configuration.

    Attributes:
        path: Configuration file that was selected.
        root: Directory containing ``path``; mypy runs from here.
        files_option: Entries of the ``files`` option, or ``None`` when unset.
    """

    path: Path
    root: Path
    files_option: tuple[str, ...] | None


def _declares_mypy(candidate: Path) -> bool:
    """Return whether ``candidate`` carries a mypy section.

    Files that cannot be parsed are accepted so the parse error is reported
    against them instead of silently searching further up the tree.
    """

    if candidate.name == _PYPROJECT:
        try:
            data = tomllib.loads(candidate.read_text(encoding="utf-8"))
        except (tomllib.TOMLDecodeError, UnicodeDecodeError):
            return True
        tool = data.get("tool")
        return isinstance(tool, dict) and "mypy" in tool
    if candidate.name == _SETUP_CFG:
        parser = configparser.ConfigParser()
        try:
            parser.read(candidate, encoding="utf-8")
        except configparser.Error:
            return True
        return parser.has_section(_INI_SECTION)
    return True


def find_project_config(start: Path) -> Path | None:
    """Return the nearest mypy configuration file at or above ``start``."""

    return find_upward(start, MYPY_CONFIG_NAMES, accept=_declares_mypy)


def _split_files_option(raw: object, path: Path) -> tuple[str, ...]:
    if isinstance(raw, str):
        entries = [part.strip() for part in raw.replace("\n", ",").split(",")]
    elif isinstance(raw, list) and all(isinstance(item, str) for item in raw):
        entries = [item.strip() for item in raw]
    else:
        raise ConfigurationError(f"Failed to parse {path.name}: 'files' must be a string or list of strings", path=path)
    return tuple(entry for entry in entries if entry)


def load_project_config(path: Path) -> ProjectConfig:
    """Parse ``path`` into a :class:`ProjectConfig`.

    Args:
        path: mypy configuration file (ini, ``setup.cfg`` or ``pyproject.toml``).

    Returns:
        ProjectConfig: Parsed configuration.

    Raises:
        ConfigurationError: If the file cannot be read or parsed.
    """

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f"Failed to read {path.name}: {exc}", path=path) from exc

    files_raw: object = None
    if path.name == _PYPROJECT:
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigurationError(f"Failed to parse {path.name}: {exc}", path=path) from exc
        tool = data.get("tool", {})
        section = tool.get("mypy", {}) if isinstance(tool, dict) else {}
        if not isinstance(section, dict):
            raise ConfigurationError(f"Failed to parse {path.name}: [tool.mypy] must be a table", path=path)
        files_raw = section.get("files")
    else:
        parser = configparser.ConfigParser()
        try:
            parser.read_string(text, source=str(path))
        except configparser.Error as exc:
            raise ConfigurationError(f"Failed to parse {path.name}: {exc}", path=path) from exc
        if parser.has_section(_INI_SECTION):
            files_raw = parser.get(_INI_SECTION, "files", fallback=None)

    files_option = _split_files_option(files_raw, path) if files_raw is not None else None
    return ProjectConfig(path=path, root=path.parent, files_option=files_option)


def _expand_entry(root: Path, entry: str) -> Iterable[Path]:
    if _GLOB_CHARS & set(entry):
        for match in sorted(root.glob(entry)):
            yield from _expand_entry(root, str(match))
        return
    target = resolve_path(entry, base_dir=root)
    if target.is_dir():
        yield from iter_python_files(target)
    elif target.is_file():
        yield target


def project_files(config: ProjectConfig) -> frozenset[Path]:
    """Return the full set of source files belonging to the project.

    Uses the ``files`` option when configured, otherwise every Python source
    under the configuration directory.
    """

    if config.files_option is None:
        return frozenset(path.resolve() for path in iter_python_files(config.root))
    collected: set[Path] = set()
    for entry in config.files_option:
        collected.update(path.resolve() for path in _expand_entry(config.root, entry))
    return frozenset(collected)


__all__ = [
    "MYPY_CONFIG_NAMES",
    "ProjectConfig",
    "find_project_config",
    "load_project_config",
    "project_files",
]
