from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from badge.errors import ApiError
from badge.models import Notification, NotificationPreference, NotificationType
from badge.schemas import NotificationPreferencesRead, NotificationPreferencesUpdate

logger = logging.getLogger("badge.notifications")

PREFERENCE_FIELDS: tuple[str, ...] = ("session_start", "session_end", "weekly_report", "sound")


def list_notifications(db: Session, *, user_id: str, only_unread: bool = False) -> list[Notification]:
    statement = select(Notification).where(Notification.user_id == user_id)
    if only_unread:
        statement = statement.where(Notification.read.is_(False))
    statement = statement.order_by(Notification.created_at.desc(), Notification.id.desc())
    return list(db.scalars(statement).all())


def create_notification(
    db: Session,
    *,
    user_id: str,
    title: str,
    message: str,
    notification_type: NotificationType,
    created_at: int,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        type=notification_type,
        read=False,
        created_at=created_at,
    )
    db.add(notification)
    return notification


def mark_as_read(db: Session, *, user_id: str, notification_id: int) -> Notification:
    notification = db.get(Notification, notification_id)
    if notification is None or notification.user_id != user_id:
        raise ApiError(
            status_code=404,
            code="NOTIFICATION_NOT_FOUND",
            message="Notification not found",
        )
    if not notification.read:
        notification.read = True
        db.commit()
        db.refresh(notification)
    return notification


def mark_all_as_read(db: Session, *, user_id: str) -> int:
    result = db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
        .values(read=True)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    updated = int(result.rowcount or 0)
    logger.info("notifications_marked_read", extra={"user_id": user_id, "updated": updated})
    return updated


def _get_preference_row(db: Session, user_id: str) -> NotificationPreference | None:
    return db.scalar(select(NotificationPreference).where(NotificationPreference.user_id == user_id))


def get_preferences(db: Session, *, user_id: str) -> NotificationPreferencesRead:
    row = _get_preference_row(db, user_id)
    if row is None:
        return NotificationPreferencesRead()
    return NotificationPreferencesRead.model_validate(row)


def update_preferences(
    db: Session,
    *,
    user_id: str,
    payload: NotificationPreferencesUpdate,
) -> NotificationPreference:
    changes = {key: value for key, value in payload.model_dump(exclude_unset=True).items() if value is not None}

    row = _get_preference_row(db, user_id)
    if row is None:
        values = {key: True for key in PREFERENCE_FIELDS}
        values.update(changes)
        row = NotificationPreference(user_id=user_id, **values)
        db.add(row)
    else:
        for key, value in changes.items():
            setattr(row, key, value)

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ApiError(
            status_code=409,
            code="PREFERENCES_CONFLICT",
            message="Preferences were updated concurrently, please retry.",
        ) from exc
    db.refresh(row)
    return row


def session_notifications_enabled(db: Session, *, user_id: str, field: str) -> bool:
    if field not in PREFERENCE_FIELDS:
        raise ValueError(f"Unknown notification preference: {field}")
    row = _get_preference_row(db, user_id)
    if row is None:
        return True
    return bool(getattr(row, field))
