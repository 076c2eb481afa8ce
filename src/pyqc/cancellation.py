# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Cooperative cancellation tokens and timeout helpers."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

from .errors import OperationTimeoutError

LOGGER = logging.getLogger(__name__)

CancellationCallback = Callable[[], None]


@runtime_checkable
class CancellationToken(Protocol):
    """Capability polled by engines at each suspension point."""

    @property
    def is_cancellation_requested(self) -> bool:
        """Return ``True`` once cancellation has been requested."""
        ...

    def on_cancellation_requested(self, callback: CancellationCallback) -> None:
        """Register ``callback`` to run when cancellation is requested."""
        ...


class _SourceToken:
    """Token view bound to a :class:`CancellationTokenSource`."""

    __slots__ = ("_source",)

    def __init__(self, source: CancellationTokenSource) -> None:
        self._source = source

    @property
    def is_cancellation_requested(self) -> bool:
        return self._source.cancelled

    def on_cancellation_requested(self, callback: CancellationCallback) -> None:
        self._source.register(callback)


class CancellationTokenSource:
    """Own a cancellation flag and hand out read-only tokens for it."""

    def __init__(self) -> None:
        self._cancelled = False
        self._callbacks: list[CancellationCallback] = []
        self.token: CancellationToken = _SourceToken(self)

    @property
    def cancelled(self) -> bool:
        """Return whether :meth:`cancel` has been called."""

        return self._cancelled

    def register(self, callback: CancellationCallback) -> None:
        """Register ``callback``; runs immediately when already cancelled."""

        if self._cancelled:
            _invoke(callback)
            return
        self._callbacks.append(callback)

    def cancel(self) -> None:
        """Request cancellation and run each registered callback exactly once."""

        if self._cancelled:
            return
        self._cancelled = True
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            _invoke(callback)


def _invoke(callback: CancellationCallback) -> None:
    try:
        callback()
    except Exception:  # noqa: BLE001 - callbacks must not break cancellation fan-out
        LOGGER.warning("cancellation callback %r raised", callback, exc_info=True)


def is_cancelled(token: CancellationToken | None) -> bool:
    """Return ``True`` when ``token`` is present and has been cancelled."""

    return token is not None and token.is_cancellation_requested


async def run_with_timeout[T](
    operation: Callable[[CancellationToken], Awaitable[T]],
    timeout_s: float | None,
    name: str | None = None,
) -> T:
    """Race ``operation`` against a timer, cancelling its token on expiry.

    Engines have no internal timeout logic; callers wrap them here instead.

    Args:
        operation: Coroutine factory receiving the cancellation token.
        timeout_s: Timeout in seconds; ``None`` disables the timer.
        name: Optional operation name used in the timeout message.

    Returns:
        T: Value produced by ``operation``.

    Raises:
        OperationTimeoutError: If the timer fires before ``operation`` completes.
    """

    source = CancellationTokenSource()
    try:
        if timeout_s is None:
            return await operation(source.token)
        try:
            return await asyncio.wait_for(operation(source.token), timeout=timeout_s)
        except TimeoutError as exc:
            raise OperationTimeoutError(timeout_s, name) from exc
    finally:
        source.cancel()


__all__ = [
    "CancellationCallback",
    "CancellationToken",
    "CancellationTokenSource",
    "is_cancelled",
    "run_with_timeout",
]
