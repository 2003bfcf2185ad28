"""Time source for the confirmation writer.

The writer takes a ``Clock`` argument instead of reading the time itself, so
tests can pass ``frozen_clock(...)`` and get byte-identical annotations.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    return datetime.now(timezone.utc)


def frozen_clock(at: datetime) -> Clock:
    """Return a clock that always reports ``at``."""

    def _now() -> datetime:
        return at

    return _now


def format_timestamp(t: datetime) -> str:
    """Render ``t`` in UTC as ``YYYY-MM-DD HH:MM:SS[.frac] +0000 UTC``.

    Fractional seconds lose their trailing zeros and disappear when zero,
    which is how the Gardener tooling writes ``gardener.cloud/timestamp``.
    Naive datetimes are taken to already be UTC.
    """
    if t.tzinfo is None:
        t = t.replace(tzinfo=timezone.utc)
    t = t.astimezone(timezone.utc)

    out = f"{t.year:04d}-{t:%m-%d %H:%M:%S}"
    if t.microsecond:
        out += "." + f"{t.microsecond:06d}".rstrip("0")
    return out + " +0000 UTC"
