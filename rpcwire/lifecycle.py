"""Server shutdown signalling and helpers for driving groups of coroutines."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Generator
from typing import Any, TypeVar

T = TypeVar("T")

DEFAULT_TIMEOUT = 60.0
"""Seconds after which an awaited operation is considered stuck."""


class AlreadyStoppedError(Exception):
    """The server was already asked to stop, or has already stopped."""

    def __init__(self) -> None:
        super().__init__("Attempted to stop server that is already stopped")


class _MonitorState:
    def __init__(self) -> None:
        self.shutdown_requested = False
        self.closed = False
        self.stopped = asyncio.Event()


class StopMonitor:
    """Owned by a running server: tells it when shutdown was requested.

    The server calls :meth:`close` once it has finished, which releases every
    waiter.
    """

    def __init__(self) -> None:
        self._state = _MonitorState()

    def shutdown_requested(self) -> bool:
        """True once some handle has asked the server to stop."""
        return self._state.shutdown_requested

    def handle(self) -> ServerHandle:
        """A handle that can stop the server or wait for it to finish."""
        return ServerHandle(self._state)

    def close(self) -> None:
        """Mark the server as finished."""
        self._state.closed = True
        self._state.stopped.set()

    def __enter__(self) -> StopMonitor:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


async def _wait_stopped(state: _MonitorState) -> None:
    if not state.closed:
        await state.stopped.wait()


class ServerHandle:
    """Stops a running server, or waits for it to finish. Awaitable."""

    def __init__(self, state: _MonitorState) -> None:
        self._state = state

    def stop(self) -> ShutdownWaiter:
        """Request shutdown; raises :class:`AlreadyStoppedError` if already stopped."""
        state = self._state
        if state.closed or state.shutdown_requested:
            raise AlreadyStoppedError()
        state.shutdown_requested = True
        return ShutdownWaiter(state)

    async def wait(self) -> None:
        """Wait until the server has finished, without asking it to stop."""
        await _wait_stopped(self._state)

    def __await__(self) -> Generator[Any, None, None]:
        return self.wait().__await__()

    def __repr__(self) -> str:
        return f"ServerHandle(stopped={self._state.closed})"


class ShutdownWaiter:
    """Resolves once the server has stopped. Awaitable."""

    def __init__(self, state: _MonitorState) -> None:
        self._state = state

    async def wait(self) -> None:
        """Wait until the server has finished."""
        await _wait_stopped(self._state)

    def __await__(self) -> Generator[Any, None, None]:
        return self.wait().__await__()


class FutureDriver:
    """Runs a changing set of background coroutines alongside other work."""

    def __init__(self) -> None:
        self._futures: list[asyncio.Future[Any]] = []

    def _prune(self) -> None:
        remaining = []
        for fut in self._futures:
            if fut.done():
                if not fut.cancelled():
                    fut.exception()  # results are not used; mark the error retrieved
            else:
                remaining.append(fut)
        self._futures = remaining

    def count(self) -> int:
        """The number of futures not finished yet."""
        self._prune()
        return len(self._futures)

    def add(self, future: Awaitable[Any]) -> None:
        """Start driving a coroutine or future."""
        self._futures.append(asyncio.ensure_future(future))

    async def select_with(self, selector: Awaitable[T]) -> T:
        """Await ``selector`` while the driven futures keep running."""
        try:
            return await selector
        finally:
            self._prune()

    async def drain(self) -> None:
        """Wait until every driven future has finished; their outcomes are discarded."""
        self._prune()
        while self._futures:
            await asyncio.wait(self._futures)
            self._prune()

    def __await__(self) -> Generator[Any, None, None]:
        return self.drain().__await__()


async def with_timeout(awaitable: Awaitable[T], seconds: float) -> T:
    """Await with a time limit; raises :class:`asyncio.TimeoutError` when exceeded."""
    return await asyncio.wait_for(awaitable, seconds)


async def with_default_timeout(awaitable: Awaitable[T]) -> T:
    """Await with the default time limit of :data:`DEFAULT_TIMEOUT` seconds."""
    return await with_timeout(awaitable, DEFAULT_TIMEOUT)