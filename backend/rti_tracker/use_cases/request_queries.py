"""Read-side use-cases for requests (scoped lists, detail, stats, timeline, documents)."""
from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ..domain_errors import NotFound, ValidationFailed
from ..models import RequestStatus, ReviewStatus, RtiLog, RtiRequest, User
from ..security import apply_request_scope, can
from ..services.audit_log import timeline
from .request_lifecycle import get_scoped_request_or_404, require_capability


def list_requests_use_case(
    *,
    db: Session,
    current_user: User,
    status: str | None = None,
    review_status: str | None = None,
) -> list[RtiRequest]:
    """Scoped requests, newest first; filtered by review status they come latest-assigned first."""
    require_capability(current_user, "canViewRequests")
    query = apply_request_scope(db.query(RtiRequest), current_user)
    if status:
        if status not in {s.value for s in RequestStatus}:
            raise ValidationFailed("INVALID_STATUS_FILTER", f"Unknown status: {status}")
        query = query.filter(RtiRequest.status == status)
    if review_status:
        if review_status not in {s.value for s in ReviewStatus}:
            raise ValidationFailed("INVALID_REVIEW_STATUS_FILTER", f"Unknown review status: {review_status}")
        return (
            query.options(joinedload(RtiRequest.assignee))
            .filter(RtiRequest.review_status == review_status)
            .order_by(RtiRequest.assignment_date.desc(), RtiRequest.id.desc())
            .all()
        )
    return query.order_by(RtiRequest.created_at.desc(), RtiRequest.id.desc()).all()


def list_reviewed_requests_use_case(*, db: Session, current_user: User) -> list[RtiRequest]:
    """District requests whose current assignee has submitted a review (SPIO admin view)."""
    require_capability(current_user, "canAssignRequests")
    return list_requests_use_case(db=db, current_user=current_user, review_status=ReviewStatus.REVIEWED.value)


def get_request_use_case(*, db: Session, request_id: str, current_user: User) -> RtiRequest:
    require_capability(current_user, "canViewRequests")
    return get_scoped_request_or_404(db=db, request_id=request_id, current_user=current_user)


def request_stats_use_case(*, db: Session, current_user: User) -> dict[str, int]:
    """Per-status counts within the caller's scope."""
    require_capability(current_user, "canViewRequests")
    query = apply_request_scope(
        db.query(RtiRequest.status, func.count(RtiRequest.id)),
        current_user,
    )
    counts = {status: int(count) for status, count in query.group_by(RtiRequest.status).all()}
    stats = {s.value.lower(): counts.get(s.value, 0) for s in RequestStatus}
    stats["total"] = sum(counts.values())
    return stats


def get_timeline_use_case(*, db: Session, request_id: str, current_user: User) -> list[RtiLog]:
    """Ordered log entries; an unknown or out-of-scope request yields an empty list."""
    require_capability(current_user, "canViewRequests")
    visible = apply_request_scope(db.query(RtiRequest), current_user).filter(RtiRequest.id == request_id).first()
    if visible is None or not can(current_user, "canViewRequests", visible):
        return []
    return timeline(db=db, request_id=request_id)


def get_request_document_use_case(
    *,
    db: Session,
    request_id: str,
    current_user: User,
    response: bool = False,
) -> tuple[str, bytes]:
    """Return (filename, content) of the citizen attachment or the approved response file."""
    request = get_request_use_case(db=db, request_id=request_id, current_user=current_user)
    if response:
        if request.status != RequestStatus.APPROVED.value or not request.response_file:
            raise NotFound("DOCUMENT_NOT_FOUND", "Response file not found")
        return request.response_file_name or f"{request.id}-response", request.response_file
    if not request.attachment:
        raise NotFound("DOCUMENT_NOT_FOUND", "Attachment not found")
    return request.file_name or f"{request.id}-attachment", request.attachment
