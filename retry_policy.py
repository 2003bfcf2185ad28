"""Bounded retry with exponential backoff.

``retry_on`` knows nothing about Kubernetes, only how many attempts it may
spend, how long to wait between them and which errors are worth another
attempt.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, TypeVar

from cancellation import Cancellation
from errors import ConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Backoff:
    duration: float = 0.01  # seconds before the second attempt
    factor: float = 5.0
    jitter: float = 0.1
    steps: int = 4  # maximum number of attempts
    cap: Optional[float] = None

    def __post_init__(self) -> None:
        if self.steps < 1:
            raise ValueError(f"backoff steps must be >= 1, got {self.steps}")
        if self.duration < 0:
            raise ValueError(f"backoff duration must be >= 0, got {self.duration}")
        if self.factor < 1:
            raise ValueError(f"backoff factor must be >= 1, got {self.factor}")
        if self.jitter < 0:
            raise ValueError(f"backoff jitter must be >= 0, got {self.jitter}")
        if self.cap is not None and self.cap < 0:
            raise ValueError(f"backoff cap must be >= 0, got {self.cap}")

    def delays(self, rand: Callable[[], float] = random.random) -> Iterator[float]:
        """Yield the ``steps - 1`` waits between attempts, never decreasing."""
        base = self.duration
        last = 0.0
        for _ in range(self.steps - 1):
            if self.cap is not None:
                base = min(base, self.cap)
            delay = base + rand() * self.jitter * base if self.jitter else base
            last = max(last, delay)
            yield last
            base *= self.factor


# Same numbers as client-go's retry.DefaultBackoff.
DEFAULT_BACKOFF = Backoff()


def retry_on(
    backoff: Backoff,
    retriable: Callable[[Exception], bool],
    fn: Callable[[], T],
    *,
    cancel: Optional[Cancellation] = None,
    rand: Callable[[], float] = random.random,
) -> T:
    """Call ``fn`` until it returns, raises a non-retriable error or runs out of attempts.

    On exhaustion the last retriable error is re-raised. Waiting happens on
    ``cancel`` when given, so a cancelled call stops without spending the
    remaining attempts.
    """
    delays = backoff.delays(rand)
    attempt = 0

    while True:
        attempt += 1
        if cancel is not None:
            cancel.check()
        try:
            return fn()
        except Exception as e:
            if not retriable(e):
                raise
            if attempt >= backoff.steps:
                logger.debug("giving up after %d attempts: %s", backoff.steps, e)
                raise
            last_err = e

        delay = next(delays)
        logger.debug("attempt %d/%d failed (%s), retrying in %.3fs", attempt, backoff.steps, last_err, delay)
        if cancel is not None:
            cancel.sleep(delay)
        else:
            time.sleep(delay)


def is_conflict(err: Exception) -> bool:
    return isinstance(err, ConflictError)


def retry_on_conflict(
    backoff: Backoff,
    fn: Callable[[], T],
    *,
    cancel: Optional[Cancellation] = None,
    rand: Callable[[], float] = random.random,
) -> T:
    return retry_on(backoff, is_conflict, fn, cancel=cancel, rand=rand)
