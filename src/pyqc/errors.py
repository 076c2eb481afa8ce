# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exception taxonomy shared by engines, the aggregator, and the hook."""

from __future__ import annotations

from pathlib import Path


class PyqcError(Exception):
    """Base class for all errors raised by pyqc."""


class ToolMissingError(PyqcError):
    """Raised when an engine's underlying analysis tool cannot be loaded.

    This is a configuration problem rather than a code-quality finding, so it
    is the only error allowed to propagate out of the engines and aggregator.
    """

    def __init__(self, tool: str, detail: str | None = None) -> None:
        """Initialise the error for ``tool``.

        Args:
            tool: Name of the missing tool (``mypy``, ``ruff`` or ``black``).
            detail: Optional loader message describing why the lookup failed.
        """

        message = f"{tool} is not available"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.tool = tool


class ConfigurationError(PyqcError):
    """Raised internally when a project configuration file is missing or unparseable."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class EngineInternalError(PyqcError):
    """Wrap an unexpected exception raised inside one engine."""

    def __init__(self, engine: str, cause: BaseException) -> None:
        super().__init__(f"{engine} engine failed unexpectedly: {cause}")
        self.engine = engine
        self.cause = cause


class EngineUnavailableError(PyqcError):
    """Raised when the event loop cannot provide the process APIs an engine needs."""


class HookParseError(PyqcError):
    """Raised when the automation hook payload is malformed."""


class OperationTimeoutError(PyqcError):
    """Raised when an operation exceeds its configured timeout."""

    def __init__(self, timeout_s: float, operation: str | None = None) -> None:
        label = f"'{operation}'" if operation else "operation"
        super().__init__(f"{label} timed out after {timeout_s:g}s")
        self.timeout_s = timeout_s
        self.operation = operation


class ConfigError(PyqcError):
    """Raised when pyqc configuration input is invalid."""


class FileWriteError(PyqcError):
    """Raised when an atomic file write cannot be completed."""

    def __init__(self, path: Path, cause: BaseException) -> None:
        super().__init__(f"Failed to write {path}: {cause}")
        self.path = path


__all__ = [
    "ConfigError",
    "ConfigurationError",
    "EngineInternalError",
    "EngineUnavailableError",
    "FileWriteError",
    "HookParseError",
    "OperationTimeoutError",
    "PyqcError",
    "ToolMissingError",
]
