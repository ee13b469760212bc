from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse


class ApiError(Exception):
    """Domain failure rendered as ``{"error": {code, message, request_id}}``."""

    def __init__(self, status_code: int, code: str, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message

    def to_response(self, request: Request) -> JSONResponse:
        return error_response(request, status_code=self.status_code, code=self.code, message=self.message)


def not_authenticated() -> ApiError:
    return ApiError(status_code=401, code="NOT_AUTHENTICATED", message="Not authenticated")


def unauthorized() -> ApiError:
    return ApiError(status_code=403, code="UNAUTHORIZED", message="Unauthorized")


def employee_not_found() -> ApiError:
    return ApiError(status_code=404, code="EMPLOYEE_NOT_FOUND", message="Employee not found")


def error_response(request: Request, *, status_code: int, code: str, message: str) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None) or "unknown"
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message, "request_id": str(request_id)}},
    )
