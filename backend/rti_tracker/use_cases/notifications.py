"""Notification inbox use-cases."""
from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from ..domain_errors import NotFound
from ..models import Notification, User
from .request_lifecycle import commit_or_fail


def list_notifications_use_case(*, db: Session, current_user: User, unread_only: bool = False) -> list[Notification]:
    query = db.query(Notification).filter(Notification.user_id == current_user.id)
    if unread_only:
        query = query.filter(Notification.status == "sent")
    return query.order_by(Notification.sent_at.desc()).all()


def mark_notification_read_use_case(*, db: Session, current_user: User, notification_id: UUID) -> Notification:
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == current_user.id,
    ).first()
    if notification is None:
        raise NotFound("NOTIFICATION_NOT_FOUND", "Notification not found")
    if notification.status != "read":
        notification.status = "read"
        commit_or_fail(db, operation="notification read")
    return notification


def mark_all_notifications_read_use_case(*, db: Session, current_user: User) -> int:
    updated = db.query(Notification).filter(
        Notification.user_id == current_user.id,
        Notification.status == "sent",
    ).update({"status": "read"}, synchronize_session=False)
    commit_or_fail(db, operation="notifications read")
    return int(updated or 0)
