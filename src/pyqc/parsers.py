# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Parsers normalising mypy and ruff output into :class:`~pyqc.models.Issue` objects."""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping, Sequence
from pathlib import Path
from typing import Final, cast

from .models import EngineName, Issue, JsonValue
from .paths import resolve_path
from .severity import Severity, severity_from_code, severity_from_label

MYPY_NOTE_SEVERITY: Final[str] = "note"
_MYPY_UNKNOWN_POSITION: Final[int] = -1


def coerce_optional_int(value: JsonValue | None) -> int | None:
    """Return an optional integer parsed from ``value`` when feasible."""

    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def coerce_optional_str(value: JsonValue | None) -> str | None:
    """Return ``value`` as a string, keeping ``None`` and dropping blanks."""

    if value is None:
        return None
    text = value if isinstance(value, str) else str(value)
    return text if text.strip() else None


def _mapping_from_json(value: JsonValue | None) -> Mapping[str, JsonValue]:
    """Return ``value`` when it is a mapping, otherwise an empty mapping."""

    return value if isinstance(value, Mapping) else {}


def iter_dicts(value: JsonValue | None) -> Iterator[Mapping[str, JsonValue]]:
    """Yield mapping items from ``value`` when it is a sequence of dict-like objects."""

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        for item in value:
            if isinstance(item, Mapping):
                yield item


def load_json_stream(stdout: str) -> list[JsonValue]:
    """Decode ``stdout`` as a JSON document or, failing that, as JSON lines.

    Lines that are not valid JSON (banners, summaries) are skipped.
    """

    stdout = stdout.strip()
    if not stdout:
        return []
    try:
        document = cast(JsonValue, json.loads(stdout))
    except json.JSONDecodeError:
        payload: list[JsonValue] = []
        for raw_line in stdout.splitlines():
            trimmed = raw_line.strip()
            if not trimmed:
                continue
            try:
                payload.append(cast(JsonValue, json.loads(trimmed)))
            except json.JSONDecodeError:
                continue
        return payload
    return document if isinstance(document, list) else [document]


def _resolve_file(raw: str | None, base_dir: Path) -> str | None:
    if raw is None:
        return None
    return str(resolve_path(raw, base_dir=base_dir))


def parse_mypy(stdout: str, *, base_dir: Path) -> list[Issue]:
    """Parse ``mypy -O json`` output into issues.

    mypy columns are 0-based and converted to 1-based positions here. ``note``
    records are folded into the suggestion of the issue they follow instead of
    being reported on their own.

    Args:
        stdout: Raw standard output captured from mypy.
        base_dir: Directory mypy ran in; relative file names resolve against it.

    Returns:
        list[Issue]: Normalised issues in emission order.
    """

    issues: list[Issue] = []
    for item in iter_dicts(load_json_stream(stdout)):
        message = coerce_optional_str(item.get("message")) or ""
        severity_label = str(item.get("severity", "error")).lower()
        hint = coerce_optional_str(item.get("hint"))
        if severity_label == MYPY_NOTE_SEVERITY:
            if issues:
                previous = issues[-1]
                joined = "\n".join(part for part in (previous.suggestion, message) if part)
                issues[-1] = previous.model_copy(update={"suggestion": joined})
            continue
        line = coerce_optional_int(item.get("line"))
        column = coerce_optional_int(item.get("column"))
        issues.append(
            Issue(
                engine=EngineName.TYPE_CHECK,
                severity=severity_from_label(severity_label, Severity.ERROR),
                rule_id=coerce_optional_str(item.get("code")),
                file=_resolve_file(coerce_optional_str(item.get("file")), base_dir),  # type: ignore[arg-type]
                line=line if line is not None and line != _MYPY_UNKNOWN_POSITION else 1,
                col=column + 1 if column is not None and column >= 0 else 1,
                message=message,
                suggestion=hint,
            ),
        )
    return issues


def parse_ruff(stdout: str, *, base_dir: Path) -> list[Issue]:
    """Parse ``ruff check --output-format=json`` output into issues.

    Args:
        stdout: Raw standard output captured from ruff.
        base_dir: Directory ruff ran in.

    Returns:
        list[Issue]: Normalised issues, one per ruff diagnostic.
    """

    issues: list[Issue] = []
    payload = load_json_stream(stdout)
    for item in iter_dicts(payload):
        filename = coerce_optional_str(item.get("filename")) or coerce_optional_str(item.get("file"))
        location = _mapping_from_json(item.get("location"))
        end_location = _mapping_from_json(item.get("end_location"))
        code = coerce_optional_str(item.get("code"))
        fix = _mapping_from_json(item.get("fix"))
        severity = severity_from_code(code, Severity.WARNING) if code else Severity.ERROR
        issues.append(
            Issue(
                engine=EngineName.LINT,
                severity=severity,
                rule_id=code,
                file=_resolve_file(filename, base_dir),  # type: ignore[arg-type]
                line=coerce_optional_int(location.get("row")),
                col=coerce_optional_int(location.get("column")),
                end_line=coerce_optional_int(end_location.get("row")),
                end_col=coerce_optional_int(end_location.get("column")),
                message=coerce_optional_str(item.get("message")) or "",
                suggestion=coerce_optional_str(fix.get("message")),
            ),
        )
    return issues


def ruff_payload_has_fix(stdout: str) -> bool:
    """Return ``True`` when any ruff diagnostic in ``stdout`` carries a fix."""

    return any(isinstance(item.get("fix"), Mapping) for item in iter_dicts(load_json_stream(stdout)))


__all__ = [
    "coerce_optional_int",
    "coerce_optional_str",
    "iter_dicts",
    "load_json_stream",
    "parse_mypy",
    "parse_ruff",
    "ruff_payload_has_fix",
]
