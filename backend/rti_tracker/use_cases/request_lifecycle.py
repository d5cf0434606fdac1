"""Request lifecycle use-cases: create, forward, approve, reject.

Every transition validates input first, then loads the request under a row lock
through the caller's scope, then stages the status change, its log entries and
the citizen notification, and commits them as one unit.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..domain_errors import AccessDenied, NotFound, StateConflict, TransactionFailed, ValidationFailed
from ..models import (
    Department,
    LogAction,
    NotificationType,
    RequestStatus,
    Role,
    RtiRequest,
    User,
)
from ..security import apply_request_scope, can
from ..services.audit_log import append_log_entry
from ..services.documents import UploadedDocument
from ..services.notifications import queue_notification
from ..services.request_ids import next_request_id

logger = logging.getLogger(__name__)

_ROLE_LABELS = {
    Role.PIO.value: "PIO",
    Role.SPIO_ADMIN.value: "SPIO",
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def require_capability(user: User, permission: str) -> None:
    if not can(user, permission):
        raise AccessDenied("FORBIDDEN", "Unauthorized")


def commit_or_fail(db: Session, *, operation: str) -> None:
    """Commit the unit of work; on storage failure roll everything back and re-raise typed."""
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Transaction failed during %s; rolled back", operation)
        raise TransactionFailed() from exc


def get_scoped_request_or_404(
    *,
    db: Session,
    request_id: str,
    current_user: User,
    permission: str = "canViewRequests",
    for_update: bool = False,
) -> RtiRequest:
    query = apply_request_scope(db.query(RtiRequest), current_user).filter(RtiRequest.id == request_id)
    if for_update:
        query = query.with_for_update()
    request = query.first()
    if request is None or not can(current_user, permission, request):
        raise NotFound("REQUEST_NOT_FOUND", "Request not found")
    return request


def _lock_for_transition(
    *,
    db: Session,
    request_id: str,
    current_user: User,
    permission: str,
    required_status: RequestStatus,
) -> RtiRequest:
    request = get_scoped_request_or_404(
        db=db,
        request_id=request_id,
        current_user=current_user,
        permission=permission,
        for_update=True,
    )
    if request.status != required_status.value:
        raise StateConflict(current_status=request.status, required_status=required_status.value)
    return request


def create_request_use_case(
    *,
    db: Session,
    current_user: User,
    department: str | None,
    subject: str | None,
    description: str | None,
    attachment: UploadedDocument | None = None,
    now: datetime | None = None,
) -> RtiRequest:
    """File a new request as Pending with a freshly allocated id."""
    require_capability(current_user, "canFileRequests")

    fields = {
        "department": (department or "").strip(),
        "subject": (subject or "").strip(),
        "description": (description or "").strip(),
    }
    missing = [name for name, value in fields.items() if not value]
    if missing:
        raise ValidationFailed(
            "REQUEST_FIELDS_REQUIRED",
            "Department, subject and description are required",
            details={"missing": missing},
        )

    now = now or utc_now()

    # The department row lock serializes id allocation per department,
    # including the first request of a day when no earlier row exists.
    dept = db.query(Department).filter(Department.code == fields["department"]).with_for_update().first()
    if dept is None:
        raise ValidationFailed("DEPARTMENT_NOT_FOUND", "Department not found")

    request = RtiRequest(
        id=next_request_id(db=db, department_code=dept.code, now=now),
        citizen_id=current_user.id,
        department=dept.code,
        subject=fields["subject"],
        description=fields["description"],
        status=RequestStatus.PENDING.value,
        created_at=now,
        attachment=attachment.content if attachment else None,
        file_name=attachment.filename if attachment else None,
    )
    db.add(request)

    append_log_entry(
        db=db,
        request_id=request.id,
        action_type=LogAction.STATUS_CHANGE,
        performed_by=current_user.id,
        old_value=None,
        new_value=RequestStatus.PENDING.value,
        remarks="New RTI request created",
    )
    if attachment:
        append_log_entry(
            db=db,
            request_id=request.id,
            action_type=LogAction.ATTACHMENT_ADDED,
            performed_by=current_user.id,
            new_value=attachment.filename,
            remarks="Request attachment added",
        )
    queue_notification(
        db=db,
        user_id=current_user.id,
        request_id=request.id,
        notification_type=NotificationType.REQUEST_CREATED,
        message=f"Your RTI request {request.id} has been submitted",
    )

    commit_or_fail(db, operation="request creation")
    logger.info("RTI request %s created by citizen %s", request.id, current_user.id)
    return request


def forward_request_use_case(*, db: Session, request_id: str, current_user: User) -> RtiRequest:
    """Pending -> Processing."""
    require_capability(current_user, "canForwardRequests")
    request = _lock_for_transition(
        db=db,
        request_id=request_id,
        current_user=current_user,
        permission="canForwardRequests",
        required_status=RequestStatus.PENDING,
    )

    request.status = RequestStatus.PROCESSING.value
    label = _ROLE_LABELS.get(current_user.role, "officer")
    append_log_entry(
        db=db,
        request_id=request.id,
        action_type=LogAction.STATUS_CHANGE,
        performed_by=current_user.id,
        old_value=RequestStatus.PENDING.value,
        new_value=RequestStatus.PROCESSING.value,
        remarks=f"Request forwarded by {label}",
    )
    queue_notification(
        db=db,
        user_id=request.citizen_id,
        request_id=request.id,
        notification_type=NotificationType.REQUEST_FORWARDED,
        message=f"Your RTI request {request.id} is now being processed",
    )

    commit_or_fail(db, operation="request forward")
    logger.info("RTI request %s forwarded by %s", request.id, current_user.id)
    return request


def approve_request_use_case(
    *,
    db: Session,
    request_id: str,
    current_user: User,
    response_document: UploadedDocument | None,
    now: datetime | None = None,
) -> RtiRequest:
    """Processing -> Approved, storing the response document."""
    require_capability(current_user, "canRespondToRequests")
    if response_document is None or not response_document.content:
        raise ValidationFailed("RESPONSE_DOCUMENT_REQUIRED", "Response document is required")

    request = _lock_for_transition(
        db=db,
        request_id=request_id,
        current_user=current_user,
        permission="canRespondToRequests",
        required_status=RequestStatus.PROCESSING,
    )

    request.status = RequestStatus.APPROVED.value
    request.response_file = response_document.content
    request.response_file_name = response_document.filename
    request.response_date = now or utc_now()
    request.responded_by = current_user.id

    append_log_entry(
        db=db,
        request_id=request.id,
        action_type=LogAction.ATTACHMENT_ADDED,
        performed_by=current_user.id,
        new_value=response_document.filename,
        remarks="Response file added",
    )
    append_log_entry(
        db=db,
        request_id=request.id,
        action_type=LogAction.STATUS_CHANGE,
        performed_by=current_user.id,
        old_value=RequestStatus.PROCESSING.value,
        new_value=RequestStatus.APPROVED.value,
        remarks="Request approved with response document",
    )
    queue_notification(
        db=db,
        user_id=request.citizen_id,
        request_id=request.id,
        notification_type=NotificationType.STATUS_CHANGED,
        message=f"Your RTI request {request.id} has been approved",
    )

    commit_or_fail(db, operation="request approval")
    logger.info("RTI request %s approved by %s", request.id, current_user.id)
    return request


def reject_request_use_case(
    *,
    db: Session,
    request_id: str,
    current_user: User,
    justification: str | None,
    now: datetime | None = None,
) -> RtiRequest:
    """Processing -> Rejected with a non-blank justification."""
    require_capability(current_user, "canRespondToRequests")
    reason = (justification or "").strip()
    if not reason:
        raise ValidationFailed("JUSTIFICATION_REQUIRED", "Justification is required for rejection")

    request = _lock_for_transition(
        db=db,
        request_id=request_id,
        current_user=current_user,
        permission="canRespondToRequests",
        required_status=RequestStatus.PROCESSING,
    )

    request.status = RequestStatus.REJECTED.value
    request.rejection_reason = reason
    request.response_date = now or utc_now()
    request.responded_by = current_user.id

    append_log_entry(
        db=db,
        request_id=request.id,
        action_type=LogAction.RESPONSE_ADDED,
        performed_by=current_user.id,
        new_value=reason,
        remarks="Response added to request",
    )
    append_log_entry(
        db=db,
        request_id=request.id,
        action_type=LogAction.STATUS_CHANGE,
        performed_by=current_user.id,
        old_value=RequestStatus.PROCESSING.value,
        new_value=RequestStatus.REJECTED.value,
        remarks="Request rejected with justification",
    )
    queue_notification(
        db=db,
        user_id=request.citizen_id,
        request_id=request.id,
        notification_type=NotificationType.STATUS_CHANGED,
        message=f"Your RTI request {request.id} has been rejected",
    )

    commit_or_fail(db, operation="request rejection")
    logger.info("RTI request %s rejected by %s", request.id, current_user.id)
    return request
