"""Unit tests for bounded polling."""

from __future__ import annotations

import threading
import time

import pytest

from logs_collector_manager.utils.polling import (
    OperationCancelledError,
    PollTimeoutError,
    RetryPolicy,
    poll_until,
)


class FakeClock:
    """Records sleeps instead of sleeping."""

    def __init__(self) -> None:
        self.sleeps: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.sleeps.append(seconds)

    @property
    def elapsed(self) -> float:
        return sum(self.sleeps)


@pytest.mark.unit
class TestRetryPolicy:
    """Tests for RetryPolicy."""

    def test_defaults(self) -> None:
        policy = RetryPolicy()
        assert policy.interval == 1.0
        assert policy.max_attempts == 30
        assert policy.timeout == 30.0

    @pytest.mark.parametrize(("interval", "attempts"), [(0, 1), (-1, 1), (1, 0)])
    def test_rejects_invalid_bounds(self, interval: float, attempts: int) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(interval=interval, max_attempts=attempts)


@pytest.mark.unit
class TestPollUntil:
    """Tests for poll_until."""

    def test_returns_on_first_satisfied_attempt(self) -> None:
        results = iter([False, False, True, True])
        clock = FakeClock()

        attempts = poll_until(
            lambda: next(results), RetryPolicy(), description="thing", sleep=clock
        )

        assert attempts == 3
        assert clock.sleeps == [1.0, 1.0]

    def test_times_out_within_attempt_budget(self) -> None:
        calls = 0

        def never() -> bool:
            nonlocal calls
            calls += 1
            return False

        clock = FakeClock()
        with pytest.raises(PollTimeoutError) as exc_info:
            poll_until(
                never, RetryPolicy(interval=1, max_attempts=30), description="x", sleep=clock
            )

        assert calls == 30
        assert exc_info.value.attempts == 30
        assert clock.elapsed <= 30

    def test_slow_checks_stop_at_deadline(self) -> None:
        def slow_never() -> bool:
            time.sleep(0.2)
            return False

        policy = RetryPolicy(interval=0.05, max_attempts=20)
        started = time.monotonic()
        with pytest.raises(PollTimeoutError) as exc_info:
            poll_until(slow_never, policy, description="slow")
        elapsed = time.monotonic() - started

        assert exc_info.value.attempts < policy.max_attempts
        # One check may still be in flight when the deadline passes
        assert elapsed < policy.timeout + 1.0

    def test_condition_errors_propagate_without_retry(self) -> None:
        calls = 0

        def broken() -> bool:
            nonlocal calls
            calls += 1
            raise RuntimeError("backend down")

        with pytest.raises(RuntimeError, match="backend down"):
            poll_until(broken, RetryPolicy(), description="x", sleep=FakeClock())

        assert calls == 1

    def test_cancelled_before_first_attempt(self) -> None:
        event = threading.Event()
        event.set()
        condition_called = False

        def condition() -> bool:
            nonlocal condition_called
            condition_called = True
            return True

        with pytest.raises(OperationCancelledError):
            poll_until(condition, RetryPolicy(), description="x", cancel_event=event)

        assert not condition_called

    def test_cancelled_while_sleeping(self) -> None:
        event = threading.Event()

        def condition() -> bool:
            event.set()
            return False

        with pytest.raises(OperationCancelledError, match="ready pod"):
            poll_until(
                condition,
                RetryPolicy(interval=5, max_attempts=3),
                description="ready pod",
                cancel_event=event,
            )
