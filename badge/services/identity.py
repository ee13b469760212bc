from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from badge.errors import ApiError, employee_not_found
from badge.models import Employee, EmployeeRole
from badge.schemas import EmployeeCreate

logger = logging.getLogger("badge.identity")


def resolve_employee(db: Session, user_id: str) -> Employee | None:
    return db.scalar(select(Employee).where(Employee.user_id == user_id))


def require_employee(db: Session, user_id: str) -> Employee:
    employee = resolve_employee(db, user_id)
    if employee is None:
        raise employee_not_found()
    return employee


def create_employee(db: Session, *, user_id: str, payload: EmployeeCreate) -> Employee:
    if resolve_employee(db, user_id) is not None:
        raise ApiError(
            status_code=409,
            code="EMPLOYEE_ALREADY_EXISTS",
            message="Employee already exists",
        )

    employee_code = payload.employee_id
    code_owner = db.scalar(select(Employee.id).where(Employee.employee_code == employee_code))
    if code_owner is not None:
        raise ApiError(
            status_code=409,
            code="EMPLOYEE_CODE_TAKEN",
            message="Employee code is already in use",
        )

    employee = Employee(
        user_id=user_id,
        employee_code=employee_code,
        first_name=payload.first_name,
        last_name=payload.last_name,
        role=EmployeeRole.EMPLOYEE,
    )
    db.add(employee)
    try:
        db.commit()
    except IntegrityError as exc:
        # Lost a race against a concurrent self-registration.
        db.rollback()
        raise ApiError(
            status_code=409,
            code="EMPLOYEE_ALREADY_EXISTS",
            message="Employee already exists",
        ) from exc
    db.refresh(employee)

    logger.info(
        "employee_created",
        extra={"employee_id": employee.id, "user_id": user_id},
    )
    return employee
