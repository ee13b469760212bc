from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from badge.audit import log_audit
from badge.clock import Clock, get_clock
from badge.db import get_db
from badge.models import AuditActorType, Employee, SessionStatus
from badge.schemas import (
    ClockActionRequest,
    EmployeeCreate,
    EmployeeRead,
    Location,
    LocationPayload,
    SessionRead,
    TodayStatsRead,
)
from badge.security import get_current_employee, require_user_id
from badge.services.aggregation import list_sessions, range_window, today_window, window_totals
from badge.services.geocoding import reverse_geocode
from badge.services.identity import create_employee, require_employee
from badge.services.sessions import clock_in, clock_out, get_active_session

router = APIRouter(tags=["attendance"])


def _resolve_location(payload: LocationPayload) -> Location:
    name = (payload.name or "").strip()
    if not name:
        name = reverse_geocode(payload.latitude, payload.longitude)
    return Location(latitude=payload.latitude, longitude=payload.longitude, name=name)


@router.post("/api/employees/me", response_model=EmployeeRead, status_code=status.HTTP_201_CREATED)
def create_current_employee(
    payload: EmployeeCreate,
    request: Request,
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db),
) -> EmployeeRead:
    employee = create_employee(db, user_id=user_id, payload=payload)
    request.state.employee_id = employee.id
    log_audit(
        db,
        request,
        actor_type=AuditActorType.EMPLOYEE,
        actor_id=user_id,
        action="EMPLOYEE_CREATED",
        entity_type="employee",
        entity_id=employee.id,
        details={"employee_code": employee.employee_code},
    )
    return EmployeeRead.model_validate(employee)


@router.get("/api/employees/me", response_model=EmployeeRead | None)
def read_current_employee(
    employee: Employee | None = Depends(get_current_employee),
) -> EmployeeRead | None:
    if employee is None:
        return None
    return EmployeeRead.model_validate(employee)


@router.get("/api/sessions/active", response_model=SessionRead | None)
def read_active_session(
    employee: Employee | None = Depends(get_current_employee),
    db: Session = Depends(get_db),
) -> SessionRead | None:
    if employee is None:
        return None
    session = get_active_session(db, employee_id=employee.id)
    if session is None:
        return None
    return SessionRead.model_validate(session)


@router.get("/api/sessions/today", response_model=TodayStatsRead | None)
def read_today_stats(
    employee: Employee | None = Depends(get_current_employee),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> TodayStatsRead | None:
    if employee is None:
        return None
    totals = window_totals(db, employee_id=employee.id, window=today_window(clock), clock=clock)
    return TodayStatsRead(
        total_duration=totals.total_duration,
        sessions_count=totals.sessions_count,
        total_duration_label=totals.label,
    )


@router.get("/api/sessions", response_model=list[SessionRead])
def read_session_history(
    start_date: int | None = Query(default=None),
    end_date: int | None = Query(default=None),
    session_status: SessionStatus | None = Query(default=None, alias="status"),
    employee: Employee | None = Depends(get_current_employee),
    db: Session = Depends(get_db),
) -> list[SessionRead]:
    if employee is None:
        return []
    if start_date is not None and end_date is not None:
        range_window(start_date, end_date)
    sessions = list_sessions(
        db,
        employee_id=employee.id,
        start_ms=start_date,
        end_ms=end_date,
        status=session_status,
    )
    return [SessionRead.model_validate(item) for item in sessions]


@router.post("/api/sessions/clock-in", response_model=SessionRead, status_code=status.HTTP_201_CREATED)
def clock_in_endpoint(
    payload: ClockActionRequest,
    request: Request,
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> SessionRead:
    employee = require_employee(db, user_id)
    request.state.employee_id = employee.id
    session = clock_in(db, employee=employee, location=_resolve_location(payload.location), clock=clock)
    log_audit(
        db,
        request,
        actor_type=AuditActorType.EMPLOYEE,
        actor_id=user_id,
        action="SESSION_CLOCK_IN",
        entity_type="work_session",
        entity_id=session.id,
        details={"location": session.start_location_name},
    )
    return SessionRead.model_validate(session)


@router.post("/api/sessions/clock-out", response_model=SessionRead)
def clock_out_endpoint(
    payload: ClockActionRequest,
    request: Request,
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> SessionRead:
    employee = require_employee(db, user_id)
    request.state.employee_id = employee.id
    session = clock_out(db, employee=employee, location=_resolve_location(payload.location), clock=clock)
    log_audit(
        db,
        request,
        actor_type=AuditActorType.EMPLOYEE,
        actor_id=user_id,
        action="SESSION_CLOCK_OUT",
        entity_type="work_session",
        entity_id=session.id,
        details={"location": session.end_location_name, "duration_ms": session.duration},
    )
    return SessionRead.model_validate(session)
