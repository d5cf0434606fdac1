"""SPIO-to-assistant verification routing.

The ASSIGNMENT / REMARK_ADDED log entries are the record of truth. The
``assigned_to`` / ``review_status`` columns on the request are a projection
maintained in the same transaction so inbox queries stay indexed.
"""
from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from ..domain_errors import AccessDenied, NotFound, StateConflict, ValidationFailed
from ..models import (
    LogAction,
    NotificationType,
    RequestStatus,
    ReviewStatus,
    Role,
    RtiLog,
    RtiRequest,
    User,
)
from ..services.audit_log import append_log_entry, latest_entry
from ..services.notifications import queue_notification
from .request_lifecycle import commit_or_fail, get_scoped_request_or_404, require_capability, utc_now

logger = logging.getLogger(__name__)

VERIFICATION_STATUSES = ("verified", "verification_failed")
_ASSIGNABLE_STATUSES = (RequestStatus.PENDING.value, RequestStatus.PROCESSING.value)


def resolve_current_assignee(*, db: Session, request_id: str) -> str | None:
    """Assistant id named by the newest ASSIGNMENT entry, if any."""
    entry = latest_entry(db=db, request_id=request_id, action_type=LogAction.ASSIGNMENT)
    return entry.new_value if entry else None


def is_request_assigned_to(*, db: Session, request_id: str, user_id: UUID) -> bool:
    return resolve_current_assignee(db=db, request_id=request_id) == str(user_id)


def is_request_reviewed(*, db: Session, request_id: str) -> bool:
    """True when the current assignee added a remark after the latest assignment."""
    assignment = latest_entry(db=db, request_id=request_id, action_type=LogAction.ASSIGNMENT)
    if assignment is None or not assignment.new_value:
        return False
    try:
        assignee_id = UUID(assignment.new_value)
    except ValueError:
        return False
    remark = (
        db.query(RtiLog.id)
        .filter(
            RtiLog.request_id == request_id,
            RtiLog.action_type == LogAction.REMARK_ADDED.value,
            RtiLog.performed_by == assignee_id,
            RtiLog.id > assignment.id,
        )
        .first()
    )
    return remark is not None


def _find_district_assistant(*, db: Session, assistant_id: UUID | str, district_code: str | None) -> User | None:
    try:
        assistant_uuid = assistant_id if isinstance(assistant_id, UUID) else UUID(str(assistant_id))
    except ValueError:
        return None
    return db.query(User).filter(
        User.id == assistant_uuid,
        User.role == Role.SPIO_ASSISTANT.value,
        User.active == True,  # noqa: E712
        User.district_code == district_code,
    ).first()


def assign_request_use_case(
    *,
    db: Session,
    request_id: str,
    assistant_id: UUID | str,
    current_user: User,
    remarks: str | None = None,
    now: datetime | None = None,
) -> RtiRequest:
    """Queue a request for verification by an assistant of the same district."""
    require_capability(current_user, "canAssignRequests")

    request = get_scoped_request_or_404(
        db=db,
        request_id=request_id,
        current_user=current_user,
        permission="canAssignRequests",
        for_update=True,
    )
    if request.status not in _ASSIGNABLE_STATUSES:
        raise StateConflict(current_status=request.status, required_status="Pending or Processing")

    assistant = _find_district_assistant(db=db, assistant_id=assistant_id, district_code=current_user.district_code)
    if assistant is None:
        raise NotFound("ASSISTANT_NOT_FOUND", "Assistant not found in your district")

    previous = request.assigned_to
    append_log_entry(
        db=db,
        request_id=request.id,
        action_type=LogAction.ASSIGNMENT,
        performed_by=current_user.id,
        old_value=str(previous) if previous else None,
        new_value=str(assistant.id),
        remarks="Queued for verification",
    )
    note = (remarks or "").strip()
    if note:
        append_log_entry(
            db=db,
            request_id=request.id,
            action_type=LogAction.REMARK_ADDED,
            performed_by=current_user.id,
            new_value=note,
            remarks=note,
        )

    request.assigned_to = assistant.id
    request.assignment_date = now or utc_now()
    request.review_status = ReviewStatus.PENDING.value
    request.assistant_remarks = None

    queue_notification(
        db=db,
        user_id=assistant.id,
        request_id=request.id,
        notification_type=NotificationType.REQUEST_ASSIGNED,
        message=f"RTI request {request.id} has been assigned to you for verification",
    )

    commit_or_fail(db, operation="request assignment")
    logger.info("RTI request %s assigned to assistant %s by %s", request.id, assistant.id, current_user.id)
    return request


def submit_review_use_case(
    *,
    db: Session,
    request_id: str,
    current_user: User,
    remarks: str | None,
    verification_status: str | None,
) -> RtiRequest:
    """Record the current assignee's verification remarks; status is untouched."""
    require_capability(current_user, "canReviewRequests")

    note = (remarks or "").strip()
    if not note:
        raise ValidationFailed("REMARKS_REQUIRED", "Remarks are required")
    if verification_status not in VERIFICATION_STATUSES:
        raise ValidationFailed(
            "INVALID_VERIFICATION_STATUS",
            "Verification status must be one of: " + ", ".join(VERIFICATION_STATUSES),
        )

    request = get_scoped_request_or_404(
        db=db,
        request_id=request_id,
        current_user=current_user,
        permission="canReviewRequests",
        for_update=True,
    )
    assignment = latest_entry(db=db, request_id=request.id, action_type=LogAction.ASSIGNMENT)
    if assignment is None or assignment.new_value != str(current_user.id):
        raise AccessDenied("REQUEST_NOT_ASSIGNED", "Request is not assigned to you")

    append_log_entry(
        db=db,
        request_id=request.id,
        action_type=LogAction.REMARK_ADDED,
        performed_by=current_user.id,
        new_value=note,
        remarks=f"Verification Status: {verification_status}. Additional Remarks: {note}",
    )
    request.review_status = ReviewStatus.REVIEWED.value
    request.assistant_remarks = note

    queue_notification(
        db=db,
        user_id=assignment.performed_by,
        request_id=request.id,
        notification_type=NotificationType.REMARK_ADDED,
        message=f"Verification remarks submitted for RTI request {request.id}",
    )

    commit_or_fail(db, operation="assistant review")
    logger.info("Assistant %s reviewed RTI request %s (%s)", current_user.id, request.id, verification_status)
    return request


def get_assigned_request_use_case(*, db: Session, request_id: str, current_user: User) -> RtiRequest:
    """Detail view for the current assignee only."""
    require_capability(current_user, "canReviewRequests")
    request = get_scoped_request_or_404(
        db=db,
        request_id=request_id,
        current_user=current_user,
        permission="canReviewRequests",
    )
    if not is_request_assigned_to(db=db, request_id=request.id, user_id=current_user.id):
        raise AccessDenied("REQUEST_NOT_ASSIGNED", "Request is not assigned to you")
    return request


def list_assigned_requests_use_case(*, db: Session, current_user: User) -> tuple[list[RtiRequest], dict[str, int]]:
    """Assistant inbox plus its counters, read from the assignment projection."""
    require_capability(current_user, "canReviewRequests")
    requests = (
        db.query(RtiRequest)
        .filter(RtiRequest.assigned_to == current_user.id)
        .order_by(RtiRequest.assignment_date.desc(), RtiRequest.id.desc())
        .all()
    )
    reviewed = sum(1 for r in requests if r.review_status == ReviewStatus.REVIEWED.value)
    stats = {
        "totalAssigned": len(requests),
        "pendingReview": len(requests) - reviewed,
        "reviewed": reviewed,
    }
    return requests, stats
