from __future__ import annotations

import threading
import time

import pytest

from cancellation import Cancellation
from errors import OperationCancelled


class _FakeMonotonic:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_no_deadline() -> None:
    c = Cancellation()
    assert c.remaining() is None
    assert c.done() is False
    c.check()


def test_cancel_sets_event() -> None:
    stop = threading.Event()
    c = Cancellation(stop)
    c.cancel()
    assert stop.is_set()
    assert c.done() is True
    with pytest.raises(OperationCancelled, match="cancelled"):
        c.check()


def test_deadline() -> None:
    clock = _FakeMonotonic()
    c = Cancellation(timeout=5.0, monotonic=clock)
    assert c.remaining() == 5.0

    clock.now += 4.0
    assert c.remaining() == 1.0
    c.check()

    clock.now += 1.0
    assert c.remaining() == 0.0
    with pytest.raises(OperationCancelled, match="deadline"):
        c.check()


def test_sleep_is_cut_short_by_deadline() -> None:
    c = Cancellation(timeout=0.05)
    started = time.monotonic()
    with pytest.raises(OperationCancelled, match="deadline"):
        c.sleep(30.0)
    assert time.monotonic() - started < 5.0


def test_sleep_is_interrupted_by_event() -> None:
    stop = threading.Event()
    c = Cancellation(stop)
    timer = threading.Timer(0.05, stop.set)
    timer.start()
    started = time.monotonic()
    try:
        with pytest.raises(OperationCancelled):
            c.sleep(30.0)
    finally:
        timer.cancel()
    assert time.monotonic() - started < 5.0


def test_sleep_returns_normally() -> None:
    Cancellation().sleep(0.0)


def test_run_returns_result() -> None:
    assert Cancellation().run(lambda: 42) == 42


def test_run_reraises_call_error() -> None:
    def _boom() -> None:
        raise KeyError("missing")

    with pytest.raises(KeyError):
        Cancellation().run(_boom)


def test_run_does_not_start_when_cancelled() -> None:
    c = Cancellation()
    c.cancel()
    calls = []
    with pytest.raises(OperationCancelled):
        c.run(lambda: calls.append(1))
    assert calls == []


def test_run_stops_waiting_when_event_is_set() -> None:
    stop = threading.Event()
    c = Cancellation(stop)
    timer = threading.Timer(0.05, stop.set)
    timer.start()
    started = time.monotonic()
    try:
        with pytest.raises(OperationCancelled):
            c.run(lambda: time.sleep(1.0))
    finally:
        timer.cancel()
    assert time.monotonic() - started < 0.5
