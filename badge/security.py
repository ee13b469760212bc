from __future__ import annotations

import logging
from typing import Any, Callable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from badge.db import get_db
from badge.errors import ApiError, not_authenticated
from badge.models import Employee, EmployeeRole
from badge.services.access import ensure_role
from badge.services.identity import resolve_employee
from badge.settings import Settings, get_settings

logger = logging.getLogger("badge.security")

bearer_scheme = HTTPBearer(auto_error=False)


def auth_configuration_issue(settings: Settings) -> str | None:
    if not (settings.auth_jwt_secret or "").strip():
        return "AUTH_JWT_SECRET_MISSING"
    return None


def decode_token(token: str) -> dict[str, Any]:
    settings = get_settings()
    issue = auth_configuration_issue(settings)
    if issue is not None:
        # An empty HMAC key would accept tokens signed by anyone.
        logger.error("token_verification_unavailable", extra={"issue": issue})
        raise ApiError(
            status_code=500,
            code="AUTH_NOT_CONFIGURED",
            message="Token verification is not configured.",
        )

    options = {
        "require_sub": True,
        "require_exp": True,
        "verify_aud": bool(settings.auth_jwt_audience),
        "verify_iss": bool(settings.auth_jwt_issuer),
    }
    try:
        payload = jwt.decode(
            token,
            settings.auth_jwt_secret,
            algorithms=[settings.auth_jwt_algorithm],
            audience=settings.auth_jwt_audience,
            issuer=settings.auth_jwt_issuer,
            options=options,
        )
    except JWTError as exc:
        raise ApiError(status_code=401, code="INVALID_TOKEN", message="Token is invalid.") from exc

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject.strip():
        raise ApiError(status_code=401, code="INVALID_TOKEN", message="Token subject is invalid.")
    return payload


def get_current_user_id(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str | None:
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None

    payload = decode_token(credentials.credentials)
    user_id = str(payload["sub"]).strip()
    request.state.actor = "user"
    request.state.actor_id = user_id
    return user_id


def require_user_id(user_id: str | None = Depends(get_current_user_id)) -> str:
    if user_id is None:
        raise not_authenticated()
    return user_id


def get_current_employee(
    request: Request,
    user_id: str | None = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Employee | None:
    if user_id is None:
        return None
    employee = resolve_employee(db, user_id)
    if employee is not None:
        request.state.employee_id = employee.id
    return employee


def require_role(role: EmployeeRole) -> Callable[..., Employee]:
    def _dependency(
        request: Request,
        user_id: str = Depends(require_user_id),
        db: Session = Depends(get_db),
    ) -> Employee:
        employee = ensure_role(resolve_employee(db, user_id), role)
        request.state.actor = employee.role.value
        request.state.employee_id = employee.id
        return employee

    return _dependency


require_admin = require_role(EmployeeRole.ADMIN)
