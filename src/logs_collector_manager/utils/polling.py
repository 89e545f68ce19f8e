"""Bounded polling with explicit cancellation.

A ``RetryPolicy`` bounds a wait both by attempt count and by overall
deadline (``interval * max_attempts``). Every suspension point observes an
optional ``threading.Event`` so a caller can abandon the wait.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog
from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_result,
    stop_after_attempt,
    stop_after_delay,
)

logger = structlog.get_logger()


class OperationCancelledError(Exception):
    """The caller signalled cancellation while an operation was suspended."""

    def __init__(self, description: str) -> None:
        super().__init__(f"Cancelled while waiting for {description}")
        self.description = description


class PollTimeoutError(Exception):
    """A polled condition did not hold within the policy's bounds."""

    def __init__(self, description: str, attempts: int, timeout: float) -> None:
        super().__init__(
            f"Timed out waiting for {description} after {attempts} attempt(s) "
            f"(budget {timeout:g}s)"
        )
        self.description = description
        self.attempts = attempts
        self.timeout = timeout


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed-interval polling bounds.

    Attributes:
        interval: Seconds between two checks.
        max_attempts: Maximum number of checks.
    """

    interval: float = 1.0
    max_attempts: int = 30

    def __post_init__(self) -> None:
        if self.interval <= 0:
            raise ValueError("interval must be positive")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    @property
    def timeout(self) -> float:
        """Overall deadline in seconds."""
        return self.interval * self.max_attempts

    def next_delay(self, retry_state: RetryCallState) -> float:
        # Sleep until the next tick or the deadline, whichever is sooner
        elapsed = retry_state.seconds_since_start or 0.0
        return max(0.0, min(self.interval, self.timeout - elapsed))


def _cancellable_sleep(
    cancel_event: threading.Event | None, description: str
) -> Callable[[float], None]:
    def _sleep(seconds: float) -> None:
        if cancel_event is None:
            time.sleep(seconds)
        elif cancel_event.wait(seconds):
            raise OperationCancelledError(description)

    return _sleep


def poll_until(
    condition: Callable[[], bool],
    policy: RetryPolicy,
    *,
    description: str,
    cancel_event: threading.Event | None = None,
    sleep: Callable[[float], Any] | None = None,
) -> int:
    """Call ``condition`` until it returns True.

    Exceptions raised by ``condition`` are never retried; they abort the wait
    and propagate unchanged.

    Args:
        condition: Zero-argument check, True once the wait is over.
        policy: Interval and attempt bounds.
        description: What is being waited for, used in logs and errors.
        cancel_event: Optional event; once set the wait stops at the next
            suspension point.
        sleep: Override of the sleep function (tests inject a fake clock).

    Returns:
        The attempt number on which the condition held.

    Raises:
        PollTimeoutError: Attempts or the deadline ran out.
        OperationCancelledError: ``cancel_event`` was set.
    """
    attempts = 0

    def _check() -> bool:
        nonlocal attempts
        if cancel_event is not None and cancel_event.is_set():
            raise OperationCancelledError(description)
        attempts += 1
        return condition()

    def _before_sleep(retry_state: RetryCallState) -> None:
        logger.debug(
            "poll_not_satisfied",
            description=description,
            attempt=retry_state.attempt_number,
            max_attempts=policy.max_attempts,
        )

    retrying = Retrying(
        stop=stop_after_attempt(policy.max_attempts) | stop_after_delay(policy.timeout),
        wait=policy.next_delay,
        retry=retry_if_result(lambda satisfied: not satisfied),
        sleep=sleep or _cancellable_sleep(cancel_event, description),
        before_sleep=_before_sleep,
        reraise=True,
    )
    try:
        retrying(_check)
    except RetryError:
        raise PollTimeoutError(description, attempts, policy.timeout) from None
    return attempts
