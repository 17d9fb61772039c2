"""Hierarchical cancellation tokens and interrupt handling."""

import asyncio
import functools
import inspect
import logging
import os
import signal
import sys
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from types import FrameType, TracebackType
from typing import Any, Self, TextIO

log = logging.getLogger(__name__)

INTERRUPT_NOTICE = (
    "\nStopping run. Cancelling all suites in progress... "
    "(press Ctrl-C again to exit without waiting)\n"
)


class TokenFinishedError(Exception):
    """Raised when work is abandoned because its token finished."""


class Cancelled(TokenFinishedError):
    """The token, or one of its ancestors, was cancelled."""

    def __init__(self) -> None:
        super().__init__("operation cancelled")


class DeadlineExceeded(TokenFinishedError):
    """The token, or one of its ancestors, reached its deadline."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"deadline of {timeout:g}s exceeded")
        self.timeout = timeout


class CancellationToken:
    """A cancellation scope that may carry a deadline.

    Finishing a token finishes every child derived from it with the same
    error. A child finishing on its own deadline leaves its parent and its
    siblings untouched.
    """

    def __init__(
        self,
        *,
        timeout: float | None = None,
        parent: "CancellationToken | None" = None,
    ) -> None:
        self._finished = asyncio.Event()
        self._error: TokenFinishedError | None = None
        self._children: set[CancellationToken] = set()
        self._parent = parent
        self._timer: asyncio.TimerHandle | None = None

        if parent is not None:
            if parent.error is not None:
                self._finish(parent.error)
                return
            parent._children.add(self)

        if timeout is not None:
            self._timer = asyncio.get_running_loop().call_later(
                timeout, self._finish, DeadlineExceeded(timeout)
            )

    @property
    def error(self) -> TokenFinishedError | None:
        """Why the token finished, or None while it is still live."""
        return self._error

    @property
    def finished(self) -> bool:
        return self._error is not None

    def child(self, timeout: float | None = None) -> "CancellationToken":
        """Derive a child token, optionally with its own deadline."""
        return CancellationToken(timeout=timeout, parent=self)

    def cancel(self) -> None:
        self._finish(Cancelled())

    def close(self) -> None:
        """Release the deadline timer and detach from the parent."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._parent is not None:
            self._parent._children.discard(self)

    def raise_if_finished(self) -> None:
        if self._error is not None:
            raise self._error

    async def wait(self) -> None:
        """Block until the token finishes."""
        await self._finished.wait()

    async def sleep(self, delay: float) -> bool:
        """Sleep for delay seconds.

        Returns:
            True if the full delay elapsed, False if the token finished first.

        """
        if self.finished:
            return False
        try:
            await asyncio.wait_for(self._finished.wait(), timeout=delay)
        except TimeoutError:
            return True
        return False

    async def guard[T](self, aw: Awaitable[T]) -> T:
        """Await aw unless the token finishes first.

        Raises:
            Cancelled: If the token was cancelled before aw completed.
            DeadlineExceeded: If the token expired before aw completed.

        """
        if self._error is not None:
            if inspect.iscoroutine(aw):
                aw.close()
            raise self._error

        work = asyncio.ensure_future(aw)
        waiter = asyncio.ensure_future(self._finished.wait())
        try:
            await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not work.done():
                work.cancel()

        if work.done():
            return work.result()

        await asyncio.wait({work})
        if not work.cancelled():
            work.exception()
        raise self._error or Cancelled()

    def _finish(self, error: TokenFinishedError) -> None:
        if self._error is not None:
            return
        self._error = error
        self._finished.set()
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        children, self._children = self._children, set()
        for child in children:
            child._finish(error)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


@dataclass(kw_only=True)
class InterruptHandler:
    """Bind SIGINT to a root cancellation token for the duration of a run.

    The first interrupt cancels the token, which finishes every per-attempt
    token derived from it so in-flight suites stop their jobs. Any interrupt
    received after the token has finished exits the process immediately.
    """

    token: CancellationToken
    exit_process: Callable[[int], Any] = os._exit
    stream: TextIO | None = None
    _loop: asyncio.AbstractEventLoop | None = field(default=None, init=False)
    _previous: Any = field(default=None, init=False)

    def handle_interrupt(self) -> None:
        if self.token.finished:
            log.warning("Interrupted again, exiting without waiting for suites")
            self.exit_process(1)
            return

        self.token.cancel()
        print(INTERRUPT_NOTICE, file=self.stream or sys.stderr)

    def _handle_signal(
        self, loop: asyncio.AbstractEventLoop, signum: int, frame: FrameType | None
    ) -> None:
        loop.call_soon_threadsafe(self.handle_interrupt)

    def __enter__(self) -> Self:
        self._loop = asyncio.get_running_loop()
        try:
            self._loop.add_signal_handler(signal.SIGINT, self.handle_interrupt)
        except NotImplementedError:
            # Event loops without signal support (Windows).
            self._previous = signal.signal(
                signal.SIGINT, functools.partial(self._handle_signal, self._loop)
            )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._previous is not None:
            signal.signal(signal.SIGINT, self._previous)
            self._previous = None
        elif self._loop is not None:
            self._loop.remove_signal_handler(signal.SIGINT)
        self._loop = None
