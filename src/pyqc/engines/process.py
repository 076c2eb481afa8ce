# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Async subprocess execution shared by the subprocess-backed engines."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from ..errors import EngineUnavailableError

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProcessResult:
    """Captured outcome of one tool invocation."""

    argv: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str


ProcessRunner = Callable[..., Awaitable[ProcessResult]]


def _decode(payload: bytes | None) -> str:
    if not payload:
        return ""
    return payload.decode("utf-8", errors="replace")


async def run_process(
    argv: Sequence[str],
    *,
    cwd: Path | None = None,
    stdin_text: str | None = None,
    env: Mapping[str, str] | None = None,
) -> ProcessResult:
    """Run ``argv`` as a child process and capture its output.

    Args:
        argv: Command line to execute; ``argv[0]`` is the executable.
        cwd: Working directory for the child process.
        stdin_text: Optional text piped to the child's standard input.
        env: Optional extra environment entries layered over ``os.environ``.

    Returns:
        ProcessResult: Exit status with decoded stdout/stderr.

    Raises:
        EngineUnavailableError: If the running event loop cannot spawn subprocesses.
        FileNotFoundError: If ``argv[0]`` does not exist.
    """

    merged_env = None
    if env:
        merged_env = dict(os.environ)
        merged_env.update(env)
    LOGGER.debug("spawning %s (cwd=%s)", " ".join(argv), cwd)
    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            cwd=cwd,
            env=merged_env,
            stdin=asyncio.subprocess.PIPE if stdin_text is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except NotImplementedError as exc:
        raise EngineUnavailableError("event loop does not support subprocesses") from exc
    stdin_bytes = stdin_text.encode("utf-8") if stdin_text is not None else None
    try:
        stdout_bytes, stderr_bytes = await process.communicate(stdin_bytes)
    except asyncio.CancelledError:
        if process.returncode is None:
            process.kill()
            await process.wait()
        raise
    returncode = process.returncode if process.returncode is not None else -1
    return ProcessResult(
        argv=tuple(argv),
        returncode=returncode,
        stdout=_decode(stdout_bytes),
        stderr=_decode(stderr_bytes),
    )


__all__ = ["ProcessResult", "ProcessRunner", "run_process"]
