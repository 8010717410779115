import asyncio
import threading

import pytest

from stackwrapper.utils.sync import PollOutcome, next_interval, poll_until, poll_until_async, wait
from tests.unit.fakes import FakeClock


class Countdown:
    """Condition that becomes true after the given number of evaluations."""

    def __init__(self, evaluations: int):
        self.remaining = evaluations
        self.calls = 0

    def __call__(self) -> bool:
        self.calls += 1
        self.remaining -= 1
        return self.remaining <= 0


@pytest.mark.parametrize(
    "strategy,expected",
    [
        ("static", [2, 2, 2, 2]),
        ("linear", [2, 4, 6, 8]),
        ("exponential", [2, 4, 8, 16]),
    ],
)
def test_next_interval(strategy, expected):
    assert [next_interval(2, attempt, strategy) for attempt in range(1, 5)] == expected


def test_next_interval_max():
    assert next_interval(2, 10, "exponential", max_interval=30) == 30


def test_poll_until_completes():
    condition = Countdown(3)

    assert poll_until(condition, interval=0) is PollOutcome.COMPLETED
    assert condition.calls == 3


def test_poll_until_times_out():
    condition = Countdown(1000)

    outcome = poll_until(condition, interval=0, timeout=5, clock=FakeClock(step=1))

    assert outcome is PollOutcome.TIMED_OUT
    assert condition.calls == 5


def test_poll_until_without_timeout():
    condition = Countdown(50)

    outcome = poll_until(condition, interval=0, timeout=0, clock=FakeClock(step=100))

    assert outcome is PollOutcome.COMPLETED
    assert condition.calls == 50


def test_poll_until_checks_deadline_first():
    condition = Countdown(1)

    outcome = poll_until(condition, interval=0, timeout=5, started=-100, clock=FakeClock())

    assert outcome is PollOutcome.TIMED_OUT
    assert condition.calls == 0


def test_poll_until_cancelled():
    cancel = threading.Event()
    condition = Countdown(1000)

    def _cancel_later():
        cancel.set()

    timer = threading.Timer(0.05, _cancel_later)
    timer.start()
    try:
        outcome = poll_until(condition, interval=0.01, cancel=cancel)
    finally:
        timer.cancel()

    assert outcome is PollOutcome.CANCELLED


def test_wait():
    cancel = threading.Event()
    assert not wait(0, cancel)
    assert not wait(0.01, cancel)

    cancel.set()
    assert wait(0, cancel)
    assert wait(10, cancel)
    assert not wait(0)


class TestPollUntilAsync:
    def test_completes(self):
        condition = Countdown(3)

        outcome = asyncio.run(poll_until_async(condition, interval=0.001))

        assert outcome is PollOutcome.COMPLETED
        assert condition.calls == 3

    def test_times_out(self):
        outcome = asyncio.run(
            poll_until_async(Countdown(1000), interval=0, timeout=3, clock=FakeClock())
        )

        assert outcome is PollOutcome.TIMED_OUT

    def test_cancelled_by_asyncio_event(self):
        async def _run():
            cancel = asyncio.Event()
            asyncio.get_running_loop().call_later(0.05, cancel.set)
            return await poll_until_async(Countdown(1000), interval=0.01, cancel=cancel)

        assert asyncio.run(_run()) is PollOutcome.CANCELLED

    def test_cancelled_by_threading_event(self):
        cancel = threading.Event()
        cancel.set()

        outcome = asyncio.run(poll_until_async(Countdown(1000), interval=0.01, cancel=cancel))

        assert outcome is PollOutcome.CANCELLED
