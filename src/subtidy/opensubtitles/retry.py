"""Bounded retry with server-paced backoff for rate-limited calls."""

from __future__ import annotations

import random
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from subtidy.core.errors import RateLimitError
from subtidy.utils.console import console

T = TypeVar("T")

MIN_WAIT = 1.0
MAX_JITTER = 0.5


def server_wait(error: RateLimitError, jitter: Callable[[], float] | None = None) -> float:
    """Seconds to wait after a 429.

    Uses the explicit Retry-After value if the server sent one, else the
    rate-limit reset countdown, else a one second minimum. A small random
    jitter is added so concurrent clients do not retry in lockstep.
    """
    if error.retry_after is not None:
        wait = error.retry_after
    elif error.reset_after is not None:
        wait = error.reset_after
    else:
        wait = MIN_WAIT
    jitter = jitter or (lambda: random.uniform(0.0, MAX_JITTER))
    return wait + jitter()


@dataclass(frozen=True)
class RetryPolicy:
    """How often to retry a rate-limited call and how long to wait between tries.

    Attributes:
        max_attempts: Total attempts, including the first one.
        wait: Computes the delay from the RateLimitError just raised.
    """

    max_attempts: int
    wait: Callable[[RateLimitError], float] = server_wait

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")


def call_with_retry(
    fn: Callable[[], T],
    policy: RetryPolicy,
    label: str = "request",
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call fn, retrying on RateLimitError up to policy.max_attempts times.

    Other exceptions propagate immediately. When attempts are exhausted the
    last RateLimitError is re-raised.
    """
    for attempt in range(1, policy.max_attempts + 1):
        try:
            return fn()
        except RateLimitError as e:
            if attempt == policy.max_attempts:
                console.print(
                    f"[red]Rate limited on {label}, giving up after {attempt} attempts[/red]"
                )
                raise
            delay = policy.wait(e)
            console.print(
                f"[yellow]Rate limited on {label}[/yellow] "
                f"(attempt {attempt}/{policy.max_attempts}), waiting {delay:.1f}s"
            )
            sleep(delay)
    raise AssertionError("unreachable")
