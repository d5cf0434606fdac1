"""Department endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..auth import PermissionChecker, get_current_user
from ..database import get_db
from ..models import User
from ..schemas import (
    DepartmentCreate,
    DepartmentCreatedResponse,
    DepartmentResponse,
    DepartmentUpdate,
    MessageResponse,
    UserResponse,
)
from ..use_cases.departments import (
    create_department_use_case,
    delete_department_use_case,
    list_departments_use_case,
    update_department_use_case,
)

router = APIRouter(prefix="/departments", tags=["departments"])


@router.get("", response_model=list[DepartmentResponse])
def list_departments(
    district_code: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """All departments sorted by name (citizens pick one when filing)."""
    return list_departments_use_case(db=db, district_code=district_code)


@router.post("", response_model=DepartmentCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_department(
    data: DepartmentCreate,
    current_user: User = Depends(PermissionChecker("canManageDepartments")),
    db: Session = Depends(get_db),
):
    """Create a department and its PIO account in the caller's district."""
    department, pio = create_department_use_case(
        db=db,
        current_user=current_user,
        name_en=data.name_en,
        pio_name=data.pio_name,
        pio_email=data.pio_email,
        pio_phone=data.pio_phone,
        pio_password=data.pio_password,
    )
    return DepartmentCreatedResponse(
        department=DepartmentResponse.model_validate(department),
        pio=UserResponse.model_validate(pio),
    )


@router.put("/{code}", response_model=DepartmentResponse)
def update_department(
    code: str,
    data: DepartmentUpdate,
    current_user: User = Depends(PermissionChecker("canManageDepartments")),
    db: Session = Depends(get_db),
):
    return update_department_use_case(db=db, current_user=current_user, code=code, name_en=data.name_en)


@router.delete("/{code}", response_model=MessageResponse)
def delete_department(
    code: str,
    current_user: User = Depends(PermissionChecker("canManageDepartments")),
    db: Session = Depends(get_db),
):
    """Delete a department that owns no requests."""
    delete_department_use_case(db=db, current_user=current_user, code=code)
    return MessageResponse(message="Department deleted successfully")
