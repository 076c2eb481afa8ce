# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shared engine contract and helpers."""

from __future__ import annotations

import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable

from ..cancellation import CancellationToken
from ..models import CheckerResult, EngineName
from ..paths import resolve_path


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Inputs accepted by every engine's :meth:`Engine.check`.

    Attributes:
        files: Target files; must be non-empty. Existence is not validated here.
        fix: Allow the engine to rewrite files.
        cache_dir: Engine cache root; engines fall back to their own default.
        cwd: Working directory; defaults to the process working directory.
        token: Cooperative cancellation token polled at suspension points.
        rules: Rule ids a fixing run may touch; ``None`` allows every safe fix.
    """

    files: tuple[Path, ...]
    fix: bool = False
    cache_dir: Path | None = None
    cwd: Path | None = None
    token: CancellationToken | None = field(default=None, compare=False)
    rules: frozenset[str] | None = None

    @classmethod
    def build(
        cls,
        files: Sequence[str | Path],
        *,
        fix: bool = False,
        cache_dir: str | Path | None = None,
        cwd: str | Path | None = None,
        token: CancellationToken | None = None,
        rules: Iterable[str] | None = None,
    ) -> EngineConfig:
        """Return a config with every path resolved to an absolute location.

        Raises:
            ValueError: If ``files`` is empty.
        """

        if not files:
            raise ValueError("EngineConfig requires at least one file")
        base = resolve_path(cwd) if cwd is not None else Path.cwd()
        return cls(
            files=tuple(resolve_path(item, base_dir=base) for item in files),
            fix=fix,
            cache_dir=resolve_path(cache_dir, base_dir=base) if cache_dir is not None else None,
            cwd=base,
            token=token,
            rules=frozenset(rules) if rules is not None else None,
        )

    @property
    def working_dir(self) -> Path:
        """Return ``cwd`` or the process working directory."""

        return self.cwd if self.cwd is not None else Path.cwd()


@runtime_checkable
class Engine(Protocol):
    """Protocol implemented by the type-check, lint and format adapters."""

    name: EngineName

    async def check(self, config: EngineConfig) -> CheckerResult:
        """Analyse ``config.files`` and return a normalised result."""
        ...


class Stopwatch:
    """Measure elapsed wall-clock milliseconds for a result's ``duration``."""

    __slots__ = ("_start",)

    def __init__(self) -> None:
        self._start = time.perf_counter()

    def elapsed_ms(self) -> float:
        """Return milliseconds elapsed since construction (never negative)."""

        return max((time.perf_counter() - self._start) * 1000.0, 0.0)


__all__ = ["Engine", "EngineConfig", "Stopwatch"]
