from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from badge.clock import Clock
from badge.errors import employee_not_found
from badge.models import Employee, WorkSession
from badge.schemas import EmployeeUpdate
from badge.services.aggregation import (
    SessionTotals,
    aggregate_sessions,
    month_window,
    range_window,
    sessions_in_window,
    today_window,
    window_totals,
)
from badge.services.sessions import get_active_session

logger = logging.getLogger("badge.directory")


@dataclass(frozen=True, slots=True)
class EmployeeStats:
    totals: SessionTotals
    sessions: list[WorkSession]


@dataclass(frozen=True, slots=True)
class EmployeeOverview:
    today_duration: int
    month_duration: int
    active_session: WorkSession | None


def list_employees(db: Session) -> list[Employee]:
    return list(db.scalars(select(Employee).order_by(Employee.id)).all())


def get_employee(db: Session, employee_id: int) -> Employee | None:
    return db.get(Employee, employee_id)


def _ensure_employee_exists(db: Session, employee_id: int) -> Employee:
    employee = db.get(Employee, employee_id)
    if employee is None:
        raise employee_not_found()
    return employee


def update_employee(db: Session, *, employee_id: int, payload: EmployeeUpdate) -> tuple[Employee, dict[str, str]]:
    employee = _ensure_employee_exists(db, employee_id)

    changes: dict[str, str] = {}
    for field_name, value in payload.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        setattr(employee, field_name, value)
        changes[field_name] = getattr(value, "value", value)

    db.commit()
    db.refresh(employee)
    return employee, changes


def delete_employee(db: Session, *, employee_id: int) -> int:
    employee = _ensure_employee_exists(db, employee_id)
    removed_sessions = len(employee.sessions)
    db.delete(employee)
    db.commit()
    logger.info(
        "employee_deleted",
        extra={"employee_id": employee_id, "removed_sessions": removed_sessions},
    )
    return removed_sessions


def get_employee_stats(
    db: Session,
    *,
    employee_id: int,
    start_ms: int,
    end_ms: int,
    clock: Clock,
) -> EmployeeStats:
    window = range_window(start_ms, end_ms)
    sessions = sessions_in_window(db, employee_id=employee_id, window=window)
    return EmployeeStats(totals=aggregate_sessions(sessions, clock.now_ms()), sessions=sessions)


def get_employee_overview(db: Session, *, employee_id: int, clock: Clock) -> EmployeeOverview:
    today = window_totals(db, employee_id=employee_id, window=today_window(clock), clock=clock)
    month = window_totals(db, employee_id=employee_id, window=month_window(clock), clock=clock)
    return EmployeeOverview(
        today_duration=today.total_duration,
        month_duration=month.total_duration,
        active_session=get_active_session(db, employee_id=employee_id),
    )
