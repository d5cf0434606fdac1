"""Department management by district SPIO admins."""
from __future__ import annotations

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..domain_errors import NotFound, ValidationFailed
from ..models import Department, District, Role, RtiRequest, User
from .accounts import (
    audit_admin_event,
    build_user,
    ensure_contact_available,
    normalize_contact,
    validate_password,
)
from .request_lifecycle import commit_or_fail, require_capability

logger = logging.getLogger(__name__)

SERIAL_WIDTH = 3


def list_departments_use_case(*, db: Session, district_code: str | None = None) -> list[Department]:
    query = db.query(Department)
    if district_code:
        query = query.filter(Department.district_code == district_code)
    return query.order_by(Department.name_en.asc()).all()


def next_department_code(*, db: Session, district_code: str) -> str:
    """``{district_code}{NNN}``; callers hold the district row lock."""
    existing = (
        db.query(Department.code)
        .filter(Department.district_code == district_code)
        .all()
    )
    serials = []
    for (code,) in existing:
        suffix = code[len(district_code):]
        if code.startswith(district_code) and suffix.isdigit():
            serials.append(int(suffix))
    return f"{district_code}{max(serials, default=0) + 1:0{SERIAL_WIDTH}d}"


def _get_district_department_or_404(*, db: Session, code: str, current_user: User) -> Department:
    department = db.query(Department).filter(
        Department.code == code,
        Department.district_code == current_user.district_code,
    ).first()
    if department is None:
        raise NotFound("DEPARTMENT_NOT_FOUND", "Department not found")
    return department


def create_department_use_case(
    *,
    db: Session,
    current_user: User,
    name_en: str | None,
    pio_name: str | None,
    pio_email: str | None,
    pio_phone: str | None,
    pio_password: str | None,
) -> tuple[Department, User]:
    """Create a department in the SPIO's district together with its PIO account."""
    require_capability(current_user, "canManageDepartments")
    name = (name_en or "").strip()
    if not name:
        raise ValidationFailed("DEPARTMENT_NAME_REQUIRED", "Department name is required")
    clean_name, clean_email, clean_phone = normalize_contact(name=pio_name, email=pio_email, phone=pio_phone)
    validate_password(pio_password)

    district = (
        db.query(District)
        .filter(District.district_code == current_user.district_code)
        .with_for_update()
        .first()
    )
    if district is None:
        raise NotFound("DISTRICT_NOT_FOUND", "District not found")
    ensure_contact_available(db=db, email=clean_email, phone=clean_phone)

    department = Department(
        code=next_department_code(db=db, district_code=district.district_code),
        name_en=name,
        district_code=district.district_code,
    )
    db.add(department)
    pio = build_user(
        role=Role.PIO,
        name=clean_name,
        email=clean_email,
        phone=clean_phone,
        password=pio_password,
        department_code=department.code,
    )
    db.add(pio)
    audit_admin_event(
        db=db,
        action="DEPARTMENT_CREATED",
        actor=current_user,
        entity_type="department",
        entity_id=department.code,
        details={"nameEn": name, "pioId": str(pio.id)},
    )

    commit_or_fail(db, operation="department creation")
    logger.info("Department %s created with PIO %s by %s", department.code, pio.id, current_user.id)
    return department, pio


def update_department_use_case(*, db: Session, current_user: User, code: str, name_en: str | None) -> Department:
    require_capability(current_user, "canManageDepartments")
    name = (name_en or "").strip()
    if not name:
        raise ValidationFailed("DEPARTMENT_NAME_REQUIRED", "Department name is required")
    department = _get_district_department_or_404(db=db, code=code, current_user=current_user)

    old_name = department.name_en
    if old_name == name:
        return department
    department.name_en = name
    audit_admin_event(
        db=db,
        action="DEPARTMENT_UPDATED",
        actor=current_user,
        entity_type="department",
        entity_id=department.code,
        details={"oldNameEn": old_name, "newNameEn": name},
    )
    commit_or_fail(db, operation="department update")
    return department


def delete_department_use_case(*, db: Session, current_user: User, code: str) -> None:
    """Delete a department that owns no requests, detaching and deactivating its PIO accounts."""
    require_capability(current_user, "canManageDepartments")
    department = _get_district_department_or_404(db=db, code=code, current_user=current_user)

    request_count = (
        db.query(func.count(RtiRequest.id))
        .filter(RtiRequest.department == department.code)
        .scalar()
    )
    if request_count:
        raise ValidationFailed(
            "DEPARTMENT_HAS_REQUESTS",
            "Cannot delete department with existing requests",
            details={"requestCount": int(request_count)},
        )

    db.query(User).filter(
        User.department_code == department.code,
        User.role == Role.PIO.value,
    ).update({"active": False, "department_code": None}, synchronize_session=False)
    db.delete(department)
    audit_admin_event(
        db=db,
        action="DEPARTMENT_DELETED",
        actor=current_user,
        entity_type="department",
        entity_id=code,
    )
    commit_or_fail(db, operation="department deletion")
    logger.info("Department %s deleted by %s", code, current_user.id)
