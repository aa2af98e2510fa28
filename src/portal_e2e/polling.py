"""Eventual-consistency polling.

``poll_until`` re-evaluates an observation until it satisfies an expectation or
the timeout budget is spent. Observations never overlap: each attempt finishes
before the next wait starts. Waiting always goes through a :class:`Clock`, so
tests can substitute a virtual one.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
import time
from collections.abc import Awaitable, Callable, Container, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

logger = logging.getLogger(__name__)

# Same escalation Playwright's expect.poll uses; the last interval repeats.
DEFAULT_INTERVALS: tuple[float, ...] = (0.1, 0.25, 0.5, 1.0)
DEFAULT_TIMEOUT_SECONDS = 60.0


class PollCancelled(Exception):
    """Raised when a poll is cancelled through its :class:`CancellationToken`."""


class ConvergenceTimeout(TimeoutError):
    """The observed system did not converge within the timeout budget."""

    def __init__(
        self,
        message: str,
        *,
        expectation: str,
        last_value: Any,
        attempts: int,
        elapsed: float,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.expectation = expectation
        self.last_value = last_value
        self.attempts = attempts
        self.elapsed = elapsed

    def __str__(self) -> str:
        return (
            f"{self.message}: expected {self.expectation}, last observed {self.last_value!r} "
            f"after {self.attempts} attempt(s) in {self.elapsed:.1f}s"
        )


class CancellationToken:
    """Cooperative cancellation shared between a test run and its polls.

    ``cancel`` may be called from any thread; sync waiters block on a
    ``threading.Event`` and async waiters are woken on their own loop.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._async_waiters: list[tuple[asyncio.AbstractEventLoop, asyncio.Event]] = []

    def cancel(self) -> None:
        with self._lock:
            self._event.set()
            waiters = list(self._async_waiters)
        for loop, event in waiters:
            loop.call_soon_threadsafe(event.set)

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Block up to ``seconds``; return True as soon as the token is cancelled."""

        return self._event.wait(seconds)

    async def race(self, pending: Awaitable[Any]) -> bool:
        """Await ``pending`` unless cancelled first; return True if cancelled."""

        loop = asyncio.get_running_loop()
        woken = asyncio.Event()
        entry = (loop, woken)
        with self._lock:
            if self._event.is_set():
                woken.set()
            self._async_waiters.append(entry)

        sleeper = asyncio.ensure_future(pending)
        watcher = asyncio.ensure_future(woken.wait())
        try:
            await asyncio.wait({sleeper, watcher}, return_when=asyncio.FIRST_COMPLETED)
            if sleeper.done():
                sleeper.result()
        finally:
            sleeper.cancel()
            watcher.cancel()
            with self._lock:
                self._async_waiters.remove(entry)
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise PollCancelled("Polling was cancelled")


class Clock(Protocol):
    def monotonic(self) -> float: ...

    def sleep(self, seconds: float, cancel: CancellationToken | None = None) -> None: ...


class SystemClock:
    """Wall clock; sleeping is interrupted early when the token is cancelled."""

    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float, cancel: CancellationToken | None = None) -> None:
        if cancel is not None:
            cancel.wait(seconds)
        else:
            time.sleep(seconds)


SYSTEM_CLOCK = SystemClock()


@dataclass(frozen=True, slots=True)
class Expectation:
    """A named predicate over an observed value."""

    description: str
    predicate: Callable[[Any], bool]

    def matches(self, value: Any) -> bool:
        return bool(self.predicate(value))


def equals(expected: Any) -> Expectation:
    return Expectation(description=f"== {expected!r}", predicate=lambda v: v == expected)


def contains(item: Any) -> Expectation:
    return Expectation(
        description=f"to contain {item!r}",
        predicate=lambda v: isinstance(v, Container) and item in v,
    )


def excludes(item: Any) -> Expectation:
    return Expectation(
        description=f"not to contain {item!r}",
        predicate=lambda v: isinstance(v, Container) and item not in v,
    )


def _as_expectation(expected: Any) -> Expectation:
    if isinstance(expected, Expectation):
        return expected
    return equals(expected)


class IntervalSchedule:
    """Yields wait intervals; once exhausted the last one repeats."""

    def __init__(self, intervals: Sequence[float]) -> None:
        if not intervals:
            raise ValueError("intervals must not be empty")
        if any(i <= 0 for i in intervals):
            raise ValueError("intervals must be > 0")
        self._intervals = tuple(intervals)
        self._index = 0

    def next(self) -> float:
        value = self._intervals[min(self._index, len(self._intervals) - 1)]
        self._index += 1
        return value


class _PollRun:
    """Loop state of a single poll: attempt count, elapsed time and last value."""

    def __init__(
        self,
        *,
        expectation: Expectation,
        timeout: float,
        intervals: Sequence[float],
        message: str | None,
        clock: Clock,
    ) -> None:
        if timeout < 0:
            raise ValueError("timeout must be >= 0")
        self.expectation = expectation
        self.timeout = timeout
        self.schedule = IntervalSchedule(intervals)
        self.message = message or "Condition was not met"
        self.clock = clock
        self.started = clock.monotonic()
        self.attempts = 0
        self.last_value: Any = None

    def record(self, value: Any, *, matched: bool) -> None:
        self.last_value = value
        logger.debug(
            "Poll attempt",
            extra={"attempt": self.attempts, "matched": matched, "observed": repr(value)},
        )

    def elapsed(self) -> float:
        return self.clock.monotonic() - self.started

    def next_delay(self) -> float:
        """Return the next wait, clipped to the budget, or raise once it is spent."""

        elapsed = self.elapsed()
        remaining = self.timeout - elapsed
        if remaining <= 0:
            logger.warning(
                "Timed out waiting for convergence",
                extra={
                    "poll_message": self.message,
                    "attempts": self.attempts,
                    "timeout_seconds": self.timeout,
                },
            )
            raise ConvergenceTimeout(
                self.message,
                expectation=self.expectation.description,
                last_value=self.last_value,
                attempts=self.attempts,
                elapsed=elapsed,
            )
        return min(self.schedule.next(), remaining)


def poll_until(
    observe: Callable[[], Any],
    expected: Any,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    intervals: Sequence[float] = DEFAULT_INTERVALS,
    message: str | None = None,
    clock: Clock | None = None,
    cancel: CancellationToken | None = None,
    retry_on: tuple[type[BaseException], ...] = (),
) -> bool:
    """Call ``observe`` until its result satisfies ``expected``.

    Args:
        observe: Zero-argument observation. Exceptions propagate unless listed in
            ``retry_on``, in which case they count as a non-matching observation.
        expected: A plain value (compared with ``==``) or an :class:`Expectation`
            such as :func:`contains` / :func:`excludes`.
        timeout: Budget in seconds; the final wait is clipped to what remains.
        intervals: Waits between attempts; the last one repeats.
        message: Description carried by :class:`ConvergenceTimeout`.

    Returns:
        True once the expectation is met.

    Raises:
        ConvergenceTimeout: the budget was spent without a match.
        PollCancelled: ``cancel`` was triggered.
    """

    run = _PollRun(
        expectation=_as_expectation(expected),
        timeout=timeout,
        intervals=intervals,
        message=message,
        clock=clock or SYSTEM_CLOCK,
    )

    while True:
        if cancel is not None:
            cancel.raise_if_cancelled()

        run.attempts += 1
        try:
            value = observe()
        except retry_on as exc:
            run.record(exc, matched=False)
        else:
            matched = run.expectation.matches(value)
            run.record(value, matched=matched)
            if matched:
                return True

        run.clock.sleep(run.next_delay(), cancel)


async def async_poll_until(
    observe: Callable[[], Any],
    expected: Any,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    intervals: Sequence[float] = DEFAULT_INTERVALS,
    message: str | None = None,
    clock: Clock | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    cancel: CancellationToken | None = None,
    retry_on: tuple[type[BaseException], ...] = (),
) -> bool:
    """Asyncio rendition of :func:`poll_until`.

    ``observe`` may return a plain value or an awaitable. Waiting uses ``sleep``
    (``asyncio.sleep`` by default) and is cut short when ``cancel`` fires.
    """

    run = _PollRun(
        expectation=_as_expectation(expected),
        timeout=timeout,
        intervals=intervals,
        message=message,
        clock=clock or SYSTEM_CLOCK,
    )

    while True:
        if cancel is not None:
            cancel.raise_if_cancelled()

        run.attempts += 1
        try:
            value = observe()
            if inspect.isawaitable(value):
                value = await value
        except retry_on as exc:
            run.record(exc, matched=False)
        else:
            matched = run.expectation.matches(value)
            run.record(value, matched=matched)
            if matched:
                return True

        delay = run.next_delay()
        if cancel is None:
            await sleep(delay)
        else:
            await cancel.race(sleep(delay))
