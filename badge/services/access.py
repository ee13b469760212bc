from __future__ import annotations

from badge.errors import unauthorized
from badge.models import Employee, EmployeeRole


def has_role(employee: Employee | None, role: EmployeeRole) -> bool:
    if employee is None:
        return False
    if role == EmployeeRole.EMPLOYEE:
        # Admins are employees too.
        return employee.role in {EmployeeRole.EMPLOYEE, EmployeeRole.ADMIN}
    return employee.role == role


def ensure_role(employee: Employee | None, role: EmployeeRole) -> Employee:
    if employee is None or not has_role(employee, role):
        raise unauthorized()
    return employee
