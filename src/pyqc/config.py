# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration model for quality checks and its environment overrides."""

from __future__ import annotations

import math
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Final, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError
from .models import EngineName
from .paths import default_cache_dir

ENV_CACHE_DIR: Final[str] = "PYQC_CACHE_DIR"
ENV_DISABLED: Final[str] = "PYQC_DISABLED"
ENV_TIMEOUT: Final[str] = "PYQC_TIMEOUT"
ENV_SEQUENTIAL: Final[str] = "PYQC_SEQUENTIAL"
ENV_AUTOFIX: Final[str] = "PYQC_AUTOFIX"

_TRUE_VALUES: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES: Final[frozenset[str]] = frozenset({"", "0", "false", "no", "off"})

OutputFormat = Literal["stylish", "json"]


def parse_bool(name: str, raw: str) -> bool:
    """Interpret an environment flag.

    Raises:
        ConfigError: If ``raw`` is not a recognised boolean spelling.
    """

    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean flag, got {raw!r}")


def parse_timeout(name: str, raw: str) -> float | None:
    """Interpret a timeout in seconds; blank or ``0`` disables it.

    Raises:
        ConfigError: If ``raw`` is not a finite, non-negative number.
    """

    text = raw.strip()
    if not text:
        return None
    try:
        value = float(text)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number of seconds, got {raw!r}") from exc
    if not math.isfinite(value) or value < 0:
        raise ConfigError(f"{name} must be a finite, non-negative number, got {raw!r}")
    return value or None


class QualityConfig(BaseModel):
    """Resolved settings for one quality-check run."""

    model_config = ConfigDict(frozen=True)

    type_check: bool = True
    lint: bool = True
    format: bool = True
    fix: bool = False
    autofix: bool = True
    cache_dir: Path = Field(default_factory=default_cache_dir)
    timeout_s: float | None = Field(default=None, gt=0)
    parallel: bool = True
    disabled: bool = False
    output_format: OutputFormat = "stylish"
    debug: bool = False

    @field_validator("cache_dir", mode="after")
    @classmethod
    def _absolute_cache_dir(cls, value: Path) -> Path:
        return value.expanduser().absolute()

    @property
    def engines(self) -> tuple[EngineName, ...]:
        """Return the enabled engines in execution order."""

        toggles = (
            (EngineName.TYPE_CHECK, self.type_check),
            (EngineName.LINT, self.lint),
            (EngineName.FORMAT, self.format),
        )
        return tuple(name for name, enabled in toggles if enabled)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None, **overrides: object) -> QualityConfig:
        """Build a configuration from ``PYQC_*`` environment variables.

        Args:
            env: Environment mapping; defaults to ``os.environ``.
            **overrides: Explicit values taking precedence over the environment.

        Returns:
            QualityConfig: Validated configuration.

        Raises:
            ConfigError: If an environment value or override is invalid.
        """

        source = os.environ if env is None else env
        values: dict[str, object] = {}
        if raw := source.get(ENV_CACHE_DIR, "").strip():
            values["cache_dir"] = Path(raw)
        if ENV_DISABLED in source:
            values["disabled"] = parse_bool(ENV_DISABLED, source[ENV_DISABLED])
        if ENV_TIMEOUT in source:
            values["timeout_s"] = parse_timeout(ENV_TIMEOUT, source[ENV_TIMEOUT])
        if ENV_SEQUENTIAL in source:
            values["parallel"] = not parse_bool(ENV_SEQUENTIAL, source[ENV_SEQUENTIAL])
        if ENV_AUTOFIX in source:
            values["autofix"] = parse_bool(ENV_AUTOFIX, source[ENV_AUTOFIX])
        values.update({key: value for key, value in overrides.items() if value is not None})
        try:
            return cls.model_validate(values)
        except ValidationError as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc


__all__ = [
    "ENV_AUTOFIX",
    "ENV_CACHE_DIR",
    "ENV_DISABLED",
    "ENV_SEQUENTIAL",
    "ENV_TIMEOUT",
    "OutputFormat",
    "QualityConfig",
    "parse_bool",
    "parse_timeout",
]
