from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from badge.clock import Clock, local_now, to_ms
from badge.errors import ApiError
from badge.models import SessionStatus, WorkSession

MS_PER_MINUTE = 60 * 1000
MS_PER_HOUR = 60 * MS_PER_MINUTE


@dataclass(frozen=True, slots=True)
class Window:
    start_ms: int
    end_ms: int

    def contains(self, ts_ms: int) -> bool:
        return self.start_ms <= ts_ms <= self.end_ms


@dataclass(frozen=True, slots=True)
class SessionTotals:
    total_duration: int
    sessions_count: int

    @property
    def label(self) -> str:
        return format_duration(self.total_duration)


def session_contribution(session: WorkSession, now_ms: int) -> int:
    if session.status == SessionStatus.COMPLETED:
        return session.duration or 0
    if session.status == SessionStatus.ACTIVE:
        return max(0, now_ms - session.start_time)
    return 0


def aggregate_sessions(sessions: Iterable[WorkSession], now_ms: int) -> SessionTotals:
    total = 0
    count = 0
    for session in sessions:
        total += session_contribution(session, now_ms)
        count += 1
    return SessionTotals(total_duration=total, sessions_count=count)


def format_duration(duration_ms: int) -> str:
    hours, remainder = divmod(max(0, duration_ms), MS_PER_HOUR)
    return f"{hours}h {remainder // MS_PER_MINUTE}m"


def range_window(start_ms: int, end_ms: int) -> Window:
    if start_ms > end_ms:
        raise ApiError(
            status_code=422,
            code="INVALID_RANGE",
            message="start_date must be less than or equal to end_date.",
        )
    return Window(start_ms=start_ms, end_ms=end_ms)


def today_window(clock: Clock) -> Window:
    now_local = local_now(clock)
    day_start = datetime.combine(now_local.date(), time.min, tzinfo=now_local.tzinfo)
    next_day = datetime.combine(now_local.date() + timedelta(days=1), time.min, tzinfo=now_local.tzinfo)
    return Window(start_ms=to_ms(day_start), end_ms=to_ms(next_day) - 1)


def month_window(clock: Clock) -> Window:
    now_local = local_now(clock)
    month_start = datetime.combine(now_local.date().replace(day=1), time.min, tzinfo=now_local.tzinfo)
    if month_start.month == 12:
        next_month = month_start.replace(year=month_start.year + 1, month=1)
    else:
        next_month = month_start.replace(month=month_start.month + 1)
    return Window(start_ms=to_ms(month_start), end_ms=to_ms(next_month) - 1)


def list_sessions(
    db: Session,
    *,
    employee_id: int,
    start_ms: int | None = None,
    end_ms: int | None = None,
    status: SessionStatus | None = None,
) -> list[WorkSession]:
    statement = select(WorkSession).where(WorkSession.employee_id == employee_id)
    if start_ms is not None:
        statement = statement.where(WorkSession.start_time >= start_ms)
    if end_ms is not None:
        statement = statement.where(WorkSession.start_time <= end_ms)
    if status is not None:
        statement = statement.where(WorkSession.status == status)
    statement = statement.order_by(WorkSession.start_time.desc(), WorkSession.id.desc())
    return list(db.scalars(statement).all())


def sessions_in_window(db: Session, *, employee_id: int, window: Window) -> list[WorkSession]:
    return list_sessions(db, employee_id=employee_id, start_ms=window.start_ms, end_ms=window.end_ms)


def window_totals(db: Session, *, employee_id: int, window: Window, clock: Clock) -> SessionTotals:
    return aggregate_sessions(sessions_in_window(db, employee_id=employee_id, window=window), clock.now_ms())
