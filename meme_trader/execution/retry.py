"""
Retry policy and a generic poll-until combinator.

The combinator knows nothing about the RPC being polled: a step either
returns a terminal value, returns None (keep polling) or raises (the attempt
is inconclusive and still counts against the budget).
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from meme_trader.shared.system.logging import Logger

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int
    interval: float = 1.0

    def __post_init__(self):
        if self.max_attempts < 0:
            raise ValueError("max_attempts must be >= 0")
        if self.interval < 0:
            raise ValueError("interval must be >= 0")


@dataclass
class PollOutcome:
    value: Optional[object]
    attempts: int
    errors: int
    last_error: Optional[BaseException] = None

    @property
    def resolved(self) -> bool:
        return self.value is not None


def poll_until(
    step: Callable[[int], Optional[T]],
    policy: RetryPolicy,
    sleep: Callable[[float], None] = time.sleep,
    label: str = "POLL",
) -> PollOutcome:
    """
    Call `step(attempt)` until it returns a value or the budget runs out.

    Sleeps `policy.interval` between attempts (not after a resolved one and
    not after the last one).
    """
    errors = 0
    last_error = None

    for attempt in range(1, policy.max_attempts + 1):
        try:
            value = step(attempt)
        except Exception as e:
            errors += 1
            last_error = e
            value = None
            Logger.debug(f"[{label}] Attempt {attempt}/{policy.max_attempts} inconclusive: {e}")

        if value is not None:
            return PollOutcome(value=value, attempts=attempt, errors=errors, last_error=last_error)

        if attempt < policy.max_attempts:
            sleep(policy.interval)

    return PollOutcome(value=None, attempts=policy.max_attempts, errors=errors, last_error=last_error)
