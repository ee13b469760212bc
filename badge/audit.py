from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import Request
from sqlalchemy.orm import Session

from badge.models import AuditActorType, AuditLog

logger = logging.getLogger("badge.audit")


def _client_ip(request: Request) -> str | None:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else None


def log_audit(
    db: Session,
    request: Request,
    *,
    actor_type: AuditActorType,
    actor_id: str,
    action: str,
    entity_type: str,
    entity_id: int | str,
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> None:
    """Persist one audit row for a state change already committed by the caller.

    Audit writes run in their own commit. A failed write is rolled back and
    logged, the request itself still succeeds.
    """
    context = {
        "request_id": getattr(request.state, "request_id", None),
        "action": action,
        "actor_type": actor_type.value,
        "actor_id": actor_id,
        "entity_type": entity_type,
        "entity_id": str(entity_id),
        "success": success,
    }
    db.add(
        AuditLog(
            ts_utc=datetime.now(timezone.utc),
            actor_type=actor_type,
            actor_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id),
            ip=_client_ip(request),
            user_agent=request.headers.get("user-agent"),
            success=success,
            details=details or {},
        )
    )
    try:
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("audit_log_write_failed", extra=context)
        return

    logger.info("audit_event", extra={**context, "details": details or {}})
