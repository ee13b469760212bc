from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from badge.audit import log_audit
from badge.clock import Clock, get_clock
from badge.db import get_db
from badge.models import AuditActorType, Employee
from badge.schemas import (
    DeleteResponse,
    EmployeeOverviewRead,
    EmployeeRead,
    EmployeeStatsRead,
    EmployeeUpdate,
    SessionRead,
)
from badge.security import require_admin
from badge.services.directory import (
    delete_employee,
    get_employee,
    get_employee_overview,
    get_employee_stats,
    list_employees,
    update_employee,
)

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/employees", response_model=list[EmployeeRead])
def list_employees_endpoint(
    _admin: Employee = Depends(require_admin),
    db: Session = Depends(get_db),
) -> list[EmployeeRead]:
    return [EmployeeRead.model_validate(item) for item in list_employees(db)]


@router.get("/employees/{employee_id}", response_model=EmployeeRead | None)
def get_employee_endpoint(
    employee_id: int,
    _admin: Employee = Depends(require_admin),
    db: Session = Depends(get_db),
) -> EmployeeRead | None:
    employee = get_employee(db, employee_id)
    if employee is None:
        return None
    return EmployeeRead.model_validate(employee)


@router.patch("/employees/{employee_id}", response_model=EmployeeRead)
def update_employee_endpoint(
    employee_id: int,
    payload: EmployeeUpdate,
    request: Request,
    admin: Employee = Depends(require_admin),
    db: Session = Depends(get_db),
) -> EmployeeRead:
    employee, changes = update_employee(db, employee_id=employee_id, payload=payload)
    log_audit(
        db,
        request,
        actor_type=AuditActorType.ADMIN,
        actor_id=admin.user_id,
        action="EMPLOYEE_UPDATED",
        entity_type="employee",
        entity_id=employee.id,
        details=changes,
    )
    return EmployeeRead.model_validate(employee)


@router.delete("/employees/{employee_id}", response_model=DeleteResponse)
def delete_employee_endpoint(
    employee_id: int,
    request: Request,
    admin: Employee = Depends(require_admin),
    db: Session = Depends(get_db),
) -> DeleteResponse:
    removed_sessions = delete_employee(db, employee_id=employee_id)
    log_audit(
        db,
        request,
        actor_type=AuditActorType.ADMIN,
        actor_id=admin.user_id,
        action="EMPLOYEE_DELETED",
        entity_type="employee",
        entity_id=employee_id,
        details={"removed_sessions": removed_sessions},
    )
    return DeleteResponse(ok=True, id=employee_id)


@router.get("/employees/{employee_id}/stats", response_model=EmployeeStatsRead)
def employee_stats_endpoint(
    employee_id: int,
    start_date: int = Query(),
    end_date: int = Query(),
    _admin: Employee = Depends(require_admin),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> EmployeeStatsRead:
    stats = get_employee_stats(
        db,
        employee_id=employee_id,
        start_ms=start_date,
        end_ms=end_date,
        clock=clock,
    )
    return EmployeeStatsRead(
        total_duration=stats.totals.total_duration,
        sessions_count=stats.totals.sessions_count,
        total_duration_label=stats.totals.label,
        sessions=[SessionRead.model_validate(item) for item in stats.sessions],
    )


@router.get("/employees/{employee_id}/overview", response_model=EmployeeOverviewRead)
def employee_overview_endpoint(
    employee_id: int,
    _admin: Employee = Depends(require_admin),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> EmployeeOverviewRead:
    overview = get_employee_overview(db, employee_id=employee_id, clock=clock)
    active_session = None
    if overview.active_session is not None:
        active_session = SessionRead.model_validate(overview.active_session)
    return EmployeeOverviewRead(
        today_duration=overview.today_duration,
        month_duration=overview.month_duration,
        active_session=active_session,
    )
