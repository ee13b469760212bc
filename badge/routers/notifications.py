from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from badge.db import get_db
from badge.schemas import (
    MarkAllReadResponse,
    NotificationPreferencesRead,
    NotificationPreferencesUpdate,
    NotificationRead,
)
from badge.security import get_current_user_id, require_user_id
from badge.services.notifications import (
    get_preferences,
    list_notifications,
    mark_all_as_read,
    mark_as_read,
    update_preferences,
)

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("", response_model=list[NotificationRead])
def list_notifications_endpoint(
    only_unread: bool = Query(default=False),
    user_id: str | None = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> list[NotificationRead]:
    if user_id is None:
        return []
    rows = list_notifications(db, user_id=user_id, only_unread=only_unread)
    return [NotificationRead.model_validate(item) for item in rows]


@router.post("/read-all", response_model=MarkAllReadResponse)
def mark_all_read_endpoint(
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db),
) -> MarkAllReadResponse:
    updated = mark_all_as_read(db, user_id=user_id)
    return MarkAllReadResponse(ok=True, updated=updated)


@router.post("/{notification_id}/read", response_model=NotificationRead)
def mark_read_endpoint(
    notification_id: int,
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db),
) -> NotificationRead:
    notification = mark_as_read(db, user_id=user_id, notification_id=notification_id)
    return NotificationRead.model_validate(notification)


@router.get("/preferences", response_model=NotificationPreferencesRead | None)
def read_preferences_endpoint(
    user_id: str | None = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> NotificationPreferencesRead | None:
    if user_id is None:
        return None
    return get_preferences(db, user_id=user_id)


@router.patch("/preferences", response_model=NotificationPreferencesRead)
def update_preferences_endpoint(
    payload: NotificationPreferencesUpdate,
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db),
) -> NotificationPreferencesRead:
    row = update_preferences(db, user_id=user_id, payload=payload)
    return NotificationPreferencesRead.model_validate(row)
