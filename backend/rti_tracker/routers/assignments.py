"""Verification routing: SPIO assigns, assistant reviews."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import PermissionChecker
from ..database import get_db
from ..models import User
from ..schemas import (
    AssignedRequestsResponse,
    AssignRequest,
    MessageResponse,
    RequestResponse,
    ReviewedRequestResponse,
    ReviewRequest,
)
from ..use_cases.request_assignment import (
    assign_request_use_case,
    get_assigned_request_use_case,
    list_assigned_requests_use_case,
    submit_review_use_case,
)
from ..use_cases.request_queries import list_reviewed_requests_use_case

router = APIRouter(tags=["assignments"])


@router.post("/requests/{request_id}/assign", response_model=MessageResponse)
def assign_request(
    request_id: str,
    data: AssignRequest,
    current_user: User = Depends(PermissionChecker("canAssignRequests")),
    db: Session = Depends(get_db),
):
    """Queue a request for verification by an assistant of the same district."""
    assign_request_use_case(
        db=db,
        request_id=request_id,
        assistant_id=data.assistant_id,
        current_user=current_user,
        remarks=data.remarks,
    )
    return MessageResponse(message="Request assigned successfully")


@router.post("/requests/{request_id}/review", response_model=MessageResponse)
def submit_review(
    request_id: str,
    data: ReviewRequest,
    current_user: User = Depends(PermissionChecker("canReviewRequests")),
    db: Session = Depends(get_db),
):
    """Submit verification remarks as the current assignee."""
    submit_review_use_case(
        db=db,
        request_id=request_id,
        current_user=current_user,
        remarks=data.remarks,
        verification_status=data.verification_status,
    )
    return MessageResponse(message="Review submitted successfully")


@router.get("/assistant/requests", response_model=AssignedRequestsResponse)
def list_assigned_requests(
    current_user: User = Depends(PermissionChecker("canReviewRequests")),
    db: Session = Depends(get_db),
):
    requests, stats = list_assigned_requests_use_case(db=db, current_user=current_user)
    return {"requests": requests, "stats": stats}


@router.get("/assistant/requests/{request_id}", response_model=RequestResponse)
def get_assigned_request(
    request_id: str,
    current_user: User = Depends(PermissionChecker("canReviewRequests")),
    db: Session = Depends(get_db),
):
    return get_assigned_request_use_case(db=db, request_id=request_id, current_user=current_user)


@router.get("/spio/reviewed-requests", response_model=list[ReviewedRequestResponse])
def list_reviewed_requests(
    current_user: User = Depends(PermissionChecker("canAssignRequests")),
    db: Session = Depends(get_db),
):
    """District requests with a submitted verification, latest assignment first."""
    return list_reviewed_requests_use_case(db=db, current_user=current_user)
