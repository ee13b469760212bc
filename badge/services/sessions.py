"""Clock-in / clock-out lifecycle.

An employee is either idle (no active session) or active (exactly one session
with status ``ACTIVE``). The check and the write of each transition run in a
single transaction: the employee row (clock-in) or the active session row
(clock-out) is locked first, and the partial unique index on active sessions
rejects whatever slips past the lock.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from badge.clock import Clock
from badge.errors import ApiError
from badge.models import Employee, NotificationType, SessionStatus, WorkSession
from badge.schemas import Location
from badge.services.aggregation import format_duration
from badge.services.notifications import create_notification, session_notifications_enabled

logger = logging.getLogger("badge.sessions")


def _already_clocked_in() -> ApiError:
    return ApiError(status_code=409, code="ALREADY_CLOCKED_IN", message="Already clocked in")


def _no_active_session() -> ApiError:
    return ApiError(status_code=409, code="NO_ACTIVE_SESSION", message="No active session")


def get_active_session(db: Session, *, employee_id: int, for_update: bool = False) -> WorkSession | None:
    statement = select(WorkSession).where(
        WorkSession.employee_id == employee_id,
        WorkSession.status == SessionStatus.ACTIVE,
    )
    if for_update:
        statement = statement.with_for_update()
    return db.scalar(statement)


def _lock_employee(db: Session, employee_id: int) -> None:
    db.scalar(select(Employee.id).where(Employee.id == employee_id).with_for_update())


def clock_in(db: Session, *, employee: Employee, location: Location, clock: Clock) -> WorkSession:
    _lock_employee(db, employee.id)
    if get_active_session(db, employee_id=employee.id) is not None:
        db.rollback()
        raise _already_clocked_in()

    now_ms = clock.now_ms()
    session = WorkSession(
        employee_id=employee.id,
        start_time=now_ms,
        start_latitude=location.latitude,
        start_longitude=location.longitude,
        start_location_name=location.name,
        status=SessionStatus.ACTIVE,
    )
    db.add(session)
    if session_notifications_enabled(db, user_id=employee.user_id, field="session_start"):
        create_notification(
            db,
            user_id=employee.user_id,
            title="Session started",
            message=f"Clocked in at {location.name}.",
            notification_type=NotificationType.SUCCESS,
            created_at=now_ms,
        )

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise _already_clocked_in() from exc
    db.refresh(session)

    logger.info(
        "session_clock_in",
        extra={"employee_id": employee.id, "session_id": session.id, "start_time": now_ms},
    )
    return session


def clock_out(db: Session, *, employee: Employee, location: Location, clock: Clock) -> WorkSession:
    session = get_active_session(db, employee_id=employee.id, for_update=True)
    if session is None:
        db.rollback()
        raise _no_active_session()

    end_ms = clock.now_ms()
    session.end_time = end_ms
    session.end_latitude = location.latitude
    session.end_longitude = location.longitude
    session.end_location_name = location.name
    session.status = SessionStatus.COMPLETED
    session.duration = end_ms - session.start_time

    if session_notifications_enabled(db, user_id=employee.user_id, field="session_end"):
        create_notification(
            db,
            user_id=employee.user_id,
            title="Session completed",
            message=f"Clocked out at {location.name} after {format_duration(session.duration)}.",
            notification_type=NotificationType.SUCCESS,
            created_at=end_ms,
        )

    db.commit()
    db.refresh(session)

    logger.info(
        "session_clock_out",
        extra={
            "employee_id": employee.id,
            "session_id": session.id,
            "end_time": end_ms,
            "duration_ms": session.duration,
        },
    )
    return session
