# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Run the selected engines and merge their results into one report."""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from pydantic import BaseModel, ConfigDict, Field, computed_field

from .cancellation import CancellationToken, run_with_timeout
from .engines import Engine, EngineConfig, FormatEngine, LintEngine, Stopwatch, TypeCheckEngine
from .errors import EngineInternalError, OperationTimeoutError, ToolMissingError
from .models import CheckerResult, EngineName, Issue
from .severity import SEVERITY_RANK

LOGGER = logging.getLogger(__name__)

ENGINE_ORDER: Final[tuple[EngineName, ...]] = (EngineName.TYPE_CHECK, EngineName.LINT, EngineName.FORMAT)
INTERNAL_ERROR_RULE: Final[str] = "internal-error"


class QualityReport(BaseModel):
    """Merged outcome of one multi-engine check."""

    model_config = ConfigDict(frozen=True)

    issues: tuple[Issue, ...] = Field(default_factory=tuple)
    duration: float = Field(default=0.0, ge=0.0)
    results: dict[EngineName, CheckerResult] = Field(default_factory=dict)
    correlation_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    metrics: dict[EngineName, float] = Field(default_factory=dict)
    timed_out: bool = False
    pending: tuple[EngineName, ...] = Field(default_factory=tuple)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success(self) -> bool:
        """Return ``True`` when every selected engine finished and succeeded."""

        return not self.pending and all(result.success for result in self.results.values())

    @property
    def fixed_count(self) -> int:
        """Return the number of fixes applied across engines."""

        return sum(result.fixed_count or 0 for result in self.results.values())

    @property
    def modified_files(self) -> tuple[Path, ...]:
        """Return the distinct files rewritten by any engine, in first-seen order."""

        seen: dict[Path, None] = {}
        for result in self.results.values():
            for path in result.modified_files or ():
                seen.setdefault(path, None)
        return tuple(seen)


def deduplicate_issues(issues: Iterable[Issue]) -> list[Issue]:
    """Return ``issues`` with repeated locations removed, keeping the first."""

    seen: set[str] = set()
    unique: list[Issue] = []
    for issue in issues:
        key = issue.location_key()
        if key in seen:
            continue
        seen.add(key)
        unique.append(issue)
    return unique


def sort_issues(issues: Iterable[Issue]) -> list[Issue]:
    """Return ``issues`` ordered by severity, file, line and column."""

    return sorted(issues, key=lambda issue: (SEVERITY_RANK[issue.severity], issue.file, issue.line, issue.col))


def _combine_results(first: CheckerResult, second: CheckerResult) -> CheckerResult:
    fixed = None
    if first.fixed_count is not None or second.fixed_count is not None:
        fixed = (first.fixed_count or 0) + (second.fixed_count or 0)
    modified = None
    if first.modified_files is not None or second.modified_files is not None:
        modified = (*(first.modified_files or ()), *(second.modified_files or ()))
    fixable = None
    if first.fixable is not None or second.fixable is not None:
        fixable = bool(first.fixable) or bool(second.fixable)
    return CheckerResult(
        issues=(*first.issues, *second.issues),
        duration=first.duration + second.duration,
        fixable=fixable,
        fixed_count=fixed,
        modified_files=modified,
    )


def _issues_in_engine_order(results: Mapping[EngineName, CheckerResult]) -> list[Issue]:
    ordered = [name for name in ENGINE_ORDER if name in results]
    return deduplicate_issues(issue for name in ordered for issue in results[name].issues)


def merge_reports(reports: Sequence[QualityReport]) -> QualityReport:
    """Combine several reports, e.g. from per-file hook runs, into one."""

    results: dict[EngineName, CheckerResult] = {}
    metrics: dict[EngineName, float] = {}
    pending: set[EngineName] = set()
    for report in reports:
        pending.update(report.pending)
        for name, result in report.results.items():
            results[name] = _combine_results(results[name], result) if name in results else result
        for name, value in report.metrics.items():
            metrics[name] = metrics.get(name, 0.0) + value
    return QualityReport(
        issues=tuple(_issues_in_engine_order(results)),
        duration=sum(report.duration for report in reports),
        results=results,
        metrics=metrics,
        timed_out=any(report.timed_out for report in reports),
        pending=tuple(name for name in ENGINE_ORDER if name in pending),
    )


@dataclass
class AggregatorHooks:
    """Optional callbacks observing engine execution."""

    before_engine: Callable[[EngineName], None] | None = None
    after_engine: Callable[[EngineName, CheckerResult], None] | None = None


def default_engines(cache_dir: Path | None = None) -> dict[EngineName, Engine]:
    """Return one fresh instance of each engine."""

    return {
        EngineName.TYPE_CHECK: TypeCheckEngine(cache_dir=cache_dir),
        EngineName.LINT: LintEngine(),
        EngineName.FORMAT: FormatEngine(),
    }


class Aggregator:
    """Invoke the selected engines concurrently or in sequence and merge their results.

    An unexpected exception inside one engine becomes a single synthetic
    issue attributed to that engine; the remaining engines still complete.
    :class:`~pyqc.errors.ToolMissingError` is the only error that escapes.
    """

    def __init__(
        self,
        engines: Mapping[EngineName, Engine] | None = None,
        *,
        hooks: AggregatorHooks | None = None,
    ) -> None:
        self._engines: dict[EngineName, Engine] = dict(engines) if engines is not None else default_engines()
        self._hooks = hooks or AggregatorHooks()

    @property
    def engines(self) -> Mapping[EngineName, Engine]:
        """Return the engines this aggregator can run."""

        return dict(self._engines)

    async def check(
        self,
        files: Sequence[str | Path],
        *,
        engines: Iterable[EngineName] | None = None,
        fix: bool = False,
        cache_dir: Path | None = None,
        cwd: Path | None = None,
        parallel: bool = True,
        timeout_s: float | None = None,
        rules: Iterable[str] | None = None,
    ) -> QualityReport:
        """Run the enabled engines over ``files``.

        Args:
            files: Target files; must be non-empty.
            engines: Engines to run; defaults to every registered engine.
            fix: Allow engines to rewrite files.
            cache_dir: Cache root forwarded to the engines.
            cwd: Working directory used to resolve relative paths.
            parallel: Run engines concurrently when ``True``; sequentially otherwise.
            timeout_s: Optional overall timeout; engines still running when it
                fires contribute no result and are listed in ``pending``.
            rules: Rule ids a fixing run may touch; ``None`` allows every safe fix.

        Returns:
            QualityReport: Merged report.

        Raises:
            ToolMissingError: If an engine's underlying tool is not installed.
            ValueError: If ``files`` is empty.
        """

        watch = Stopwatch()
        wanted = set(engines) if engines is not None else set(ENGINE_ORDER)
        selected = [name for name in ENGINE_ORDER if name in wanted and name in self._engines]
        base_config = EngineConfig.build(files, fix=fix, cache_dir=cache_dir, cwd=cwd, rules=rules)
        results: dict[EngineName, CheckerResult] = {}
        metrics: dict[EngineName, float] = {}

        async def _run_selected(token: CancellationToken) -> None:
            config = EngineConfig(
                files=base_config.files,
                fix=base_config.fix,
                cache_dir=base_config.cache_dir,
                cwd=base_config.cwd,
                token=token,
                rules=base_config.rules,
            )
            if parallel:
                await self._run_group(selected, config, results, metrics)
                return
            for name in selected:
                if token.is_cancellation_requested:
                    break
                await self._run_engine(name, config, results, metrics)

        timed_out = False
        pending: tuple[EngineName, ...] = ()
        try:
            await run_with_timeout(_run_selected, timeout_s, name="quality check")
        except OperationTimeoutError as exc:
            timed_out = True
            pending = tuple(name for name in selected if name not in results)
            LOGGER.warning("%s; no result from: %s", exc, ", ".join(name.value for name in pending) or "none")

        ordered = {name: results[name] for name in ENGINE_ORDER if name in results}
        return QualityReport(
            issues=tuple(_issues_in_engine_order(ordered)),
            duration=watch.elapsed_ms(),
            results=ordered,
            metrics={name: metrics[name] for name in ordered if name in metrics},
            timed_out=timed_out,
            pending=pending,
        )

    async def _run_group(
        self,
        selected: Sequence[EngineName],
        config: EngineConfig,
        results: dict[EngineName, CheckerResult],
        metrics: dict[EngineName, float],
    ) -> None:
        # A missing tool cancels the sibling engines before it propagates.
        try:
            async with asyncio.TaskGroup() as group:
                for name in selected:
                    group.create_task(self._run_engine(name, config, results, metrics), name=f"pyqc-{name.value}")
        except BaseExceptionGroup as failures:
            missing = failures.subgroup(ToolMissingError)
            if missing is None:
                raise
            raise missing.exceptions[0]

    async def _run_engine(
        self,
        name: EngineName,
        config: EngineConfig,
        results: dict[EngineName, CheckerResult],
        metrics: dict[EngineName, float],
    ) -> None:
        engine = self._engines[name]
        if self._hooks.before_engine is not None:
            self._hooks.before_engine(name)
        watch = Stopwatch()
        try:
            result = await engine.check(config)
        except ToolMissingError:
            raise
        except Exception as exc:  # noqa: BLE001 - one engine must not abort its siblings
            error = EngineInternalError(name.value, exc)
            LOGGER.error("%s", error, exc_info=exc)
            result = CheckerResult.failure(
                name,
                str(error),
                file=config.files[0],
                duration=watch.elapsed_ms(),
                rule_id=INTERNAL_ERROR_RULE,
            )
        results[name] = result
        metrics[name] = watch.elapsed_ms()
        LOGGER.debug("%s finished with %d issue(s) in %.1fms", name.value, len(result.issues), metrics[name])
        if self._hooks.after_engine is not None:
            self._hooks.after_engine(name, result)


__all__ = [
    "ENGINE_ORDER",
    "Aggregator",
    "AggregatorHooks",
    "QualityReport",
    "deduplicate_issues",
    "default_engines",
    "merge_reports",
    "sort_issues",
]
