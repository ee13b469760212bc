"""Current-time capability.

Durations of active sessions are computed against "now" at read time, so every
service that needs the time receives a clock instead of calling ``time.time``.
Tests install a :class:`FrozenClock` through FastAPI dependency overrides.
"""

from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Protocol
from zoneinfo import ZoneInfo

from badge.settings import get_settings

DEFAULT_TIMEZONE = "Europe/Rome"
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class Clock(Protocol):
    def now_ms(self) -> int: ...

    def tz(self) -> ZoneInfo: ...


@lru_cache
def attendance_timezone() -> ZoneInfo:
    raw_name = (get_settings().attendance_timezone or "").strip() or DEFAULT_TIMEZONE
    try:
        return ZoneInfo(raw_name)
    except Exception:
        return ZoneInfo(DEFAULT_TIMEZONE)


class SystemClock:
    def now_ms(self) -> int:
        return time.time_ns() // 1_000_000

    def tz(self) -> ZoneInfo:
        return attendance_timezone()


class FrozenClock:
    def __init__(self, now_ms: int, tz_name: str = "UTC"):
        self._now_ms = now_ms
        self._tz = ZoneInfo(tz_name)

    def now_ms(self) -> int:
        return self._now_ms

    def tz(self) -> ZoneInfo:
        return self._tz

    def advance(self, delta_ms: int) -> None:
        self._now_ms += delta_ms


def to_ms(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - EPOCH) // timedelta(milliseconds=1)


def local_now(clock: Clock) -> datetime:
    return datetime.fromtimestamp(clock.now_ms() / 1000, tz=clock.tz())


_system_clock = SystemClock()


def get_clock() -> Clock:
    return _system_clock
