"""Notification inbox endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..models import User
from ..schemas import MarkAllReadResponse, NotificationResponse
from ..use_cases.notifications import (
    list_notifications_use_case,
    mark_all_notifications_read_use_case,
    mark_notification_read_use_case,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=list[NotificationResponse])
def list_notifications(
    unread: bool = False,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return list_notifications_use_case(db=db, current_user=current_user, unread_only=unread)


@router.post("/read-all", response_model=MarkAllReadResponse)
def mark_all_read(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return MarkAllReadResponse(updated=mark_all_notifications_read_use_case(db=db, current_user=current_user))


@router.post("/{notification_id}/read", response_model=NotificationResponse)
def mark_read(
    notification_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return mark_notification_read_use_case(db=db, current_user=current_user, notification_id=notification_id)
