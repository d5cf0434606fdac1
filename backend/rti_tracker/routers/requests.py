"""RTI request endpoints: filing, officer transitions, reads and documents."""
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status
from sqlalchemy.orm import Session

from ..auth import PermissionChecker, get_current_user
from ..database import get_db
from ..models import User
from ..schemas import (
    MessageResponse,
    RejectRequest,
    RequestCreatedResponse,
    RequestResponse,
    RequestStatsResponse,
    TimelineEntryResponse,
)
from ..services.documents import content_type_for, read_upload
from ..use_cases.request_lifecycle import (
    approve_request_use_case,
    create_request_use_case,
    forward_request_use_case,
    reject_request_use_case,
)
from ..use_cases.request_queries import (
    get_request_document_use_case,
    get_request_use_case,
    get_timeline_use_case,
    list_requests_use_case,
    request_stats_use_case,
)

router = APIRouter(prefix="/requests", tags=["requests"])


def _download(filename: str, content: bytes) -> Response:
    safe_name = filename.replace('"', "").replace("\r", "").replace("\n", "")
    return Response(
        content=content,
        media_type=content_type_for(safe_name),
        headers={"Content-Disposition": f'attachment; filename="{safe_name}"'},
    )


@router.post("", response_model=RequestCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_request(
    department: Optional[str] = Form(None),
    subject: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    attachment: Optional[UploadFile] = File(None),
    current_user: User = Depends(PermissionChecker("canFileRequests")),
    db: Session = Depends(get_db),
):
    """File a new request (multipart, optional pdf/doc/docx attachment)."""
    request = create_request_use_case(
        db=db,
        current_user=current_user,
        department=department,
        subject=subject,
        description=description,
        attachment=read_upload(attachment),
    )
    return RequestCreatedResponse(
        id=request.id,
        subject=request.subject,
        status=request.status,
        date=request.created_at,
        file_name=request.file_name,
    )


@router.get("", response_model=list[RequestResponse])
def list_requests(
    status_filter: Optional[str] = Query(None, alias="status"),
    review_status: Optional[str] = Query(None, alias="reviewStatus"),
    current_user: User = Depends(PermissionChecker("canViewRequests")),
    db: Session = Depends(get_db),
):
    """Requests visible to the caller, newest first."""
    return list_requests_use_case(
        db=db,
        current_user=current_user,
        status=status_filter,
        review_status=review_status,
    )


@router.get("/stats", response_model=RequestStatsResponse)
def get_request_stats(
    current_user: User = Depends(PermissionChecker("canViewRequests")),
    db: Session = Depends(get_db),
):
    return request_stats_use_case(db=db, current_user=current_user)


@router.get("/{request_id}", response_model=RequestResponse)
def get_request(
    request_id: str,
    current_user: User = Depends(PermissionChecker("canViewRequests")),
    db: Session = Depends(get_db),
):
    return get_request_use_case(db=db, request_id=request_id, current_user=current_user)


@router.get("/{request_id}/timeline", response_model=list[TimelineEntryResponse])
def get_request_timeline(
    request_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Audit log of a request in chronological order."""
    return get_timeline_use_case(db=db, request_id=request_id, current_user=current_user)


@router.get("/{request_id}/attachment")
def download_attachment(
    request_id: str,
    current_user: User = Depends(PermissionChecker("canViewRequests")),
    db: Session = Depends(get_db),
):
    filename, content = get_request_document_use_case(db=db, request_id=request_id, current_user=current_user)
    return _download(filename, content)


@router.get("/{request_id}/response-file")
def download_response_file(
    request_id: str,
    current_user: User = Depends(PermissionChecker("canViewRequests")),
    db: Session = Depends(get_db),
):
    filename, content = get_request_document_use_case(
        db=db,
        request_id=request_id,
        current_user=current_user,
        response=True,
    )
    return _download(filename, content)


@router.post("/{request_id}/forward", response_model=MessageResponse)
def forward_request(
    request_id: str,
    current_user: User = Depends(PermissionChecker("canForwardRequests")),
    db: Session = Depends(get_db),
):
    """Pending -> Processing."""
    forward_request_use_case(db=db, request_id=request_id, current_user=current_user)
    return MessageResponse(message="Request forwarded successfully")


@router.post("/{request_id}/approve", response_model=MessageResponse)
def approve_request(
    request_id: str,
    response_file: Optional[UploadFile] = File(None),
    current_user: User = Depends(PermissionChecker("canRespondToRequests")),
    db: Session = Depends(get_db),
):
    """Processing -> Approved; a response document is mandatory."""
    approve_request_use_case(
        db=db,
        request_id=request_id,
        current_user=current_user,
        response_document=read_upload(response_file),
    )
    return MessageResponse(message="Request approved successfully")


@router.post("/{request_id}/reject", response_model=MessageResponse)
def reject_request(
    request_id: str,
    data: RejectRequest,
    current_user: User = Depends(PermissionChecker("canRespondToRequests")),
    db: Session = Depends(get_db),
):
    """Processing -> Rejected; justification must not be blank."""
    reject_request_use_case(
        db=db,
        request_id=request_id,
        current_user=current_user,
        justification=data.justification,
    )
    return MessageResponse(message="Request rejected successfully")
