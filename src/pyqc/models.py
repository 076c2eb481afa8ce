# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Core data models shared across the pyqc package."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from .severity import Severity

type JsonScalar = str | int | float | bool | None
type JsonValue = JsonScalar | list[JsonValue] | dict[str, JsonValue]


class EngineName(str, Enum):
    """Enumerate the analysis engines orchestrated by pyqc."""

    TYPE_CHECK = "type-check"
    LINT = "lint"
    FORMAT = "format"


def _coerce_position(value: object) -> int:
    """Return a 1-based position, falling back to ``1`` for unknown values."""

    if isinstance(value, bool) or value is None:
        return 1
    try:
        number = int(str(value)) if not isinstance(value, int) else value
    except ValueError:
        return 1
    return number if number >= 1 else 1


class Issue(BaseModel):
    """Normalized diagnostic finding produced by one engine."""

    model_config = ConfigDict(frozen=True)

    engine: EngineName
    severity: Severity
    rule_id: str | None = None
    file: str
    line: int = 1
    col: int = 1
    end_line: int | None = None
    end_col: int | None = None
    message: str
    suggestion: str | None = None

    @field_validator("file", mode="before")
    @classmethod
    def _absolute_file(cls, value: str | Path | None) -> str:
        """Store ``file`` as an absolute path, using the working directory when unknown.

        Args:
            value: Path emitted by the engine, or ``None`` when the finding has
                no file association.

        Returns:
            str: Absolute path string.
        """

        if value is None or (isinstance(value, str) and not value.strip()):
            return str(Path.cwd())
        path = value if isinstance(value, Path) else Path(value)
        if not path.is_absolute():
            path = Path.cwd() / path
        return str(path)

    @field_validator("line", "col", mode="before")
    @classmethod
    def _one_based(cls, value: object) -> int:
        return _coerce_position(value)

    @field_validator("end_line", "end_col", mode="before")
    @classmethod
    def _optional_one_based(cls, value: object) -> int | None:
        if value is None:
            return None
        return _coerce_position(value)

    def location_key(self) -> str:
        """Return the key used to deduplicate issues across engines and runs."""

        return f"{self.engine.value}:{self.file}:{self.line}:{self.col}:{self.rule_id or 'norule'}"


class CheckerResult(BaseModel):
    """Outcome of one engine invocation."""

    model_config = ConfigDict(frozen=True)

    issues: tuple[Issue, ...] = Field(default_factory=tuple)
    duration: float = Field(default=0.0, ge=0.0)
    fixable: bool | None = None
    fixed_count: int | None = Field(default=None, ge=0)
    modified_files: tuple[Path, ...] | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success(self) -> bool:
        """Return ``True`` when the engine reported no issues."""

        return len(self.issues) == 0

    @classmethod
    def empty(cls, duration: float = 0.0) -> CheckerResult:
        """Return a clean result carrying only ``duration``.

        Used both for genuinely clean runs and for "no verdict" outcomes such as
        cancellation, where a partial issue list must never be reported.
        """

        return cls(duration=max(duration, 0.0))

    @classmethod
    def failure(
        cls,
        engine: EngineName,
        message: str,
        *,
        file: str | Path | None = None,
        duration: float = 0.0,
        rule_id: str | None = None,
    ) -> CheckerResult:
        """Return a failed result holding a single ``error`` issue.

        Args:
            engine: Engine the failure is attributed to.
            message: Human-readable description of the failure.
            file: Optional file associated with the failure.
            duration: Elapsed time in milliseconds.
            rule_id: Optional rule identifier for the synthetic issue.

        Returns:
            CheckerResult: Result whose only issue describes the failure.
        """

        issue = Issue(
            engine=engine,
            severity=Severity.ERROR,
            rule_id=rule_id,
            file=str(file) if file is not None else None,  # type: ignore[arg-type]
            message=message,
        )
        return cls(issues=(issue,), duration=max(duration, 0.0), fixable=False)


__all__ = [
    "CheckerResult",
    "EngineName",
    "Issue",
    "JsonScalar",
    "JsonValue",
]
