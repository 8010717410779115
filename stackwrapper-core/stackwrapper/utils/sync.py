"""Polling and waiting utilities"""

import asyncio
import enum
import threading
import time
from typing import Callable, Literal, Optional, Union

Strategy = Literal["static", "linear", "exponential"]


class PollOutcome(enum.Enum):
    """The reason a poll loop returned."""

    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


def next_interval(
    interval: float, attempt: int, strategy: Strategy = "static", max_interval: float = None
) -> float:
    """
    Calculates the wait time before the next poll attempt.

    :param interval: the initial interval
    :param attempt: the number of attempts made so far (starting at 1)
    :param strategy: ``static`` keeps the interval, ``linear`` grows it by ``interval`` per attempt,
        ``exponential`` doubles it per attempt
    :param max_interval: optional upper bound of the returned value
    :return: the wait time in seconds
    """
    if strategy == "linear":
        result = interval * attempt
    elif strategy == "exponential":
        result = interval * (2 ** (attempt - 1))
    else:
        result = interval
    if max_interval is not None:
        result = min(result, max_interval)
    return result


def wait(seconds: float, cancel: Optional[threading.Event] = None) -> bool:
    """
    Blocks for the given number of seconds, or until the cancellation event is set.

    :return: True if the wait was cancelled, False otherwise
    """
    if cancel is None:
        if seconds > 0:
            time.sleep(seconds)
        return False
    if seconds <= 0:
        return cancel.is_set()
    return cancel.wait(seconds)


def poll_until(
    condition: Callable[[], bool],
    interval: float,
    timeout: Optional[float] = None,
    cancel: Optional[threading.Event] = None,
    strategy: Strategy = "static",
    max_interval: float = None,
    started: Optional[float] = None,
    clock: Callable[[], float] = time.monotonic,
) -> PollOutcome:
    """
    Evaluates the given condition until it returns a truthy value, waiting between two evaluations.

    The deadline is checked before every evaluation, so the interval only determines the sampling rate and not the
    point in time the poll gives up. A non-positive interval skips the wait altogether.

    :param condition: the status check, returns True once the awaited state is reached
    :param interval: seconds to wait between two evaluations (see ``strategy``)
    :param timeout: seconds after ``started`` at which to give up, ``None`` or 0 polls without limit
    :param cancel: optional event which aborts the poll when set
    :param strategy: how the interval evolves between attempts
    :param max_interval: optional upper bound for the wait between two attempts
    :param started: the clock value the timeout is measured from, defaults to the time of the call
    :param clock: monotonic clock used to measure the elapsed time
    :return: the outcome of the poll
    """
    if started is None:
        started = clock()

    attempt = 0
    while True:
        if timeout and (clock() - started) > timeout:
            return PollOutcome.TIMED_OUT
        if condition():
            return PollOutcome.COMPLETED
        attempt += 1
        if wait(next_interval(interval, attempt, strategy, max_interval), cancel):
            return PollOutcome.CANCELLED


async def poll_until_async(
    condition: Callable[[], bool],
    interval: float,
    timeout: Optional[float] = None,
    cancel: Optional[Union[asyncio.Event, threading.Event]] = None,
    strategy: Strategy = "static",
    max_interval: float = None,
    started: Optional[float] = None,
    clock: Callable[[], float] = time.monotonic,
) -> PollOutcome:
    """
    Same as ``poll_until``, but waits cooperatively so it can be used from within an event loop. The condition is
    still a blocking callable.
    """
    if started is None:
        started = clock()

    attempt = 0
    while True:
        if timeout and (clock() - started) > timeout:
            return PollOutcome.TIMED_OUT
        if condition():
            return PollOutcome.COMPLETED
        attempt += 1
        delay = next_interval(interval, attempt, strategy, max_interval)
        if cancel is None:
            if delay > 0:
                await asyncio.sleep(delay)
            continue
        if cancel.is_set():
            return PollOutcome.CANCELLED
        if delay <= 0:
            continue
        if isinstance(cancel, asyncio.Event):
            try:
                await asyncio.wait_for(cancel.wait(), timeout=delay)
                return PollOutcome.CANCELLED
            except asyncio.TimeoutError:
                continue
        await asyncio.sleep(delay)
        if cancel.is_set():
            return PollOutcome.CANCELLED
