# cancellation.py
from __future__ import annotations

import threading
import time
from typing import Callable, Optional, TypeVar

from errors import OperationCancelled

T = TypeVar("T")


class Cancellation:
    """Stop event plus an optional deadline, shared by one call chain.

    ``event`` is the same kind of ``threading.Event`` the controller loops
    stop on, so a caller can pass its own shutdown event.
    """

    def __init__(
        self,
        event: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.event = event if event is not None else threading.Event()
        self._monotonic = monotonic
        self._deadline = None if timeout is None else monotonic() + timeout

    def cancel(self) -> None:
        self.event.set()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._monotonic())

    def done(self) -> bool:
        if self.event.is_set():
            return True
        return self._deadline is not None and self._monotonic() >= self._deadline

    def check(self) -> None:
        if self.event.is_set():
            raise OperationCancelled("operation cancelled")
        if self._deadline is not None and self._monotonic() >= self._deadline:
            raise OperationCancelled("deadline exceeded")

    def sleep(self, seconds: float) -> None:
        """Wait ``seconds`` unless cancelled first; never outlives the deadline."""
        self.check()
        remaining = self.remaining()
        if remaining is not None and remaining <= seconds:
            # the deadline comes first, no attempt can follow this wait
            if not self.event.wait(remaining):
                raise OperationCancelled("deadline exceeded")
        elif not self.event.wait(seconds):
            return
        raise OperationCancelled("operation cancelled")

    def run(self, call: Callable[[], T], poll: float = 0.05) -> T:
        """Run ``call`` on a worker thread and return its result.

        The caller stops waiting as soon as the event is set or the deadline
        passes and gets OperationCancelled; the worker is left to finish on
        its own. Errors raised by ``call`` are re-raised here.
        """
        self.check()
        outcome: dict = {}
        finished = threading.Event()

        def _target() -> None:
            try:
                outcome["value"] = call()
            except BaseException as e:  # handed back to the waiting thread
                outcome["error"] = e
            finally:
                finished.set()

        threading.Thread(target=_target, daemon=True).start()
        while not finished.wait(poll):
            self.check()

        if "error" in outcome:
            raise outcome["error"]
        return outcome["value"]
