"""Staff account endpoints (SPIO assistants, SPIO admins)."""
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..auth import PermissionChecker
from ..database import get_db
from ..models import User
from ..schemas import (
    AssistantUpdate,
    MessageResponse,
    PasswordResetRequest,
    SpioCreate,
    StaffCreate,
    UserResponse,
)
from ..use_cases.accounts import (
    create_assistant_use_case,
    create_spio_use_case,
    deactivate_assistant_use_case,
    list_assistants_use_case,
    list_spios_use_case,
    reset_spio_password_use_case,
    update_assistant_use_case,
)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/assistants", response_model=list[UserResponse])
def list_assistants(
    current_user: User = Depends(PermissionChecker("canManageAssistants")),
    db: Session = Depends(get_db),
):
    """Assistants of the caller's district."""
    return list_assistants_use_case(db=db, current_user=current_user)


@router.post("/assistants", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_assistant(
    data: StaffCreate,
    current_user: User = Depends(PermissionChecker("canManageAssistants")),
    db: Session = Depends(get_db),
):
    return create_assistant_use_case(
        db=db,
        current_user=current_user,
        name=data.name,
        email=data.email,
        phone=data.phone,
        password=data.password,
        address=data.address,
    )


@router.patch("/assistants/{assistant_id}", response_model=UserResponse)
def update_assistant(
    assistant_id: UUID,
    data: AssistantUpdate,
    current_user: User = Depends(PermissionChecker("canManageAssistants")),
    db: Session = Depends(get_db),
):
    return update_assistant_use_case(
        db=db,
        current_user=current_user,
        assistant_id=assistant_id,
        name=data.name,
        email=data.email,
        phone=data.phone,
        active=data.active,
    )


@router.delete("/assistants/{assistant_id}", response_model=MessageResponse)
def deactivate_assistant(
    assistant_id: UUID,
    current_user: User = Depends(PermissionChecker("canManageAssistants")),
    db: Session = Depends(get_db),
):
    """Deactivate (never hard-delete) an assistant; their log entries stay attributable."""
    deactivate_assistant_use_case(db=db, current_user=current_user, assistant_id=assistant_id)
    return MessageResponse(message="Assistant deactivated successfully")


@router.get("/spios", response_model=list[UserResponse])
def list_spios(
    current_user: User = Depends(PermissionChecker("canManageSpios")),
    db: Session = Depends(get_db),
):
    return list_spios_use_case(db=db, current_user=current_user)


@router.post("/spios", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_spio(
    data: SpioCreate,
    current_user: User = Depends(PermissionChecker("canManageSpios")),
    db: Session = Depends(get_db),
):
    return create_spio_use_case(
        db=db,
        current_user=current_user,
        name=data.name,
        email=data.email,
        phone=data.phone,
        password=data.password,
        district_code=data.district_code,
        address=data.address,
    )


@router.post("/spios/{spio_id}/reset-password", response_model=UserResponse)
def reset_spio_password(
    spio_id: UUID,
    data: PasswordResetRequest,
    current_user: User = Depends(PermissionChecker("canManageSpios")),
    db: Session = Depends(get_db),
):
    """Set a new password and reactivate the account."""
    return reset_spio_password_use_case(
        db=db,
        current_user=current_user,
        spio_id=spio_id,
        new_password=data.new_password,
    )
