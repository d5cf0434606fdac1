"""Notification rows written alongside lifecycle changes."""
from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from ..models import Notification, NotificationType


def queue_notification(
    *,
    db: Session,
    user_id: UUID,
    notification_type: NotificationType,
    message: str,
    request_id: str | None = None,
    via: str = "app",
) -> Notification:
    notification = Notification(
        user_id=user_id,
        request_id=request_id,
        notification_type=NotificationType(notification_type).value,
        via=via,
        message=message,
        status="sent",
    )
    db.add(notification)
    return notification
