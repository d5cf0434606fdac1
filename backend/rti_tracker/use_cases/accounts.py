"""Account use-cases: citizen registration, login bookkeeping, staff management."""
from __future__ import annotations

import logging
import re
from uuid import UUID, uuid4

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..auth import hash_password, verify_password
from ..config import settings
from ..domain_errors import AccessDenied, InvalidCredentials, NotFound, ValidationFailed
from ..models import AuditEvent, District, Role, User
from .request_lifecycle import commit_or_fail, require_capability

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE_RE = re.compile(r"^\d{10}$")


def normalize_contact(*, name: str | None, email: str | None, phone: str | None) -> tuple[str, str, str]:
    """Trim and validate the identity fields shared by every account type."""
    clean_name = (name or "").strip()
    clean_email = (email or "").strip().lower()
    clean_phone = (phone or "").strip()
    if not clean_name or not clean_email or not clean_phone:
        raise ValidationFailed("ACCOUNT_FIELDS_REQUIRED", "Name, email and phone are required")
    if not _EMAIL_RE.match(clean_email):
        raise ValidationFailed("INVALID_EMAIL", "Invalid email format")
    if not _PHONE_RE.match(clean_phone):
        raise ValidationFailed("INVALID_PHONE", "Phone number must be 10 digits")
    return clean_name, clean_email, clean_phone


def validate_password(password: str | None) -> str:
    if not password or len(password) < settings.PASSWORD_MIN_LENGTH:
        raise ValidationFailed(
            "WEAK_PASSWORD",
            f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters long",
        )
    if len(password) > settings.PASSWORD_MAX_LENGTH:
        raise ValidationFailed(
            "WEAK_PASSWORD",
            f"Password must be at most {settings.PASSWORD_MAX_LENGTH} characters",
        )
    return password


def ensure_contact_available(
    *,
    db: Session,
    email: str,
    phone: str,
    exclude_user_id: UUID | None = None,
) -> None:
    query = db.query(User).filter(or_(User.email == email, User.phone == phone))
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    if query.first() is not None:
        raise ValidationFailed("USER_ALREADY_EXISTS", "User with this email or phone already exists")


def build_user(
    *,
    role: Role,
    name: str,
    email: str,
    phone: str,
    password: str,
    address: str | None = None,
    district_code: str | None = None,
    department_code: str | None = None,
) -> User:
    return User(
        id=uuid4(),
        name=name,
        email=email,
        phone=phone,
        password_hash=hash_password(password),
        role=role.value,
        address=address,
        district_code=district_code,
        department_code=department_code,
        active=True,
        failed_login_attempts=0,
    )


def audit_admin_event(
    *,
    db: Session,
    action: str,
    actor: User | None,
    entity_type: str,
    entity_id: str,
    details: dict | None = None,
) -> None:
    db.add(
        AuditEvent(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=actor.id if actor else None,
            user_name=actor.name if actor else None,
            details=details or {},
        )
    )


def register_citizen_use_case(
    *,
    db: Session,
    name: str | None,
    email: str | None,
    phone: str | None,
    password: str | None,
    address: str | None = None,
) -> User:
    clean_name, clean_email, clean_phone = normalize_contact(name=name, email=email, phone=phone)
    validate_password(password)
    ensure_contact_available(db=db, email=clean_email, phone=clean_phone)

    user = build_user(
        role=Role.CITIZEN,
        name=clean_name,
        email=clean_email,
        phone=clean_phone,
        password=password,
        address=(address or "").strip() or None,
    )
    db.add(user)
    commit_or_fail(db, operation="citizen registration")
    logger.info("Citizen %s registered", user.id)
    return user


def authenticate_use_case(*, db: Session, email: str | None, password: str | None) -> User:
    """Check credentials and maintain the failed-login counter.

    SPIO admins are deactivated once the counter reaches the configured
    threshold; only a state admin password reset reactivates them.
    """
    clean_email = (email or "").strip().lower()
    if not clean_email or not password:
        raise ValidationFailed("CREDENTIALS_REQUIRED", "Email and password are required")

    user = db.query(User).filter(User.email == clean_email).first()
    if user is None:
        raise InvalidCredentials()

    if not user.active:
        raise AccessDenied("ACCOUNT_INACTIVE", "Account is deactivated. Please contact the administrator.")

    if verify_password(password, user.password_hash):
        if user.failed_login_attempts:
            user.failed_login_attempts = 0
            commit_or_fail(db, operation="login counter reset")
        return user

    user.failed_login_attempts = (user.failed_login_attempts or 0) + 1
    audit_admin_event(
        db=db,
        action="LOGIN_FAILED",
        actor=user,
        entity_type="user",
        entity_id=str(user.id),
        details={"attempts": user.failed_login_attempts},
    )
    locked = (
        user.role == Role.SPIO_ADMIN.value
        and user.failed_login_attempts >= settings.AUTH_SPIO_MAX_FAILED_LOGINS
    )
    if locked:
        user.active = False
        audit_admin_event(
            db=db,
            action="ACCOUNT_DEACTIVATED",
            actor=user,
            entity_type="user",
            entity_id=str(user.id),
            details={"reason": "too_many_failed_logins"},
        )
    commit_or_fail(db, operation="failed login bookkeeping")

    if locked:
        logger.warning("SPIO account %s deactivated after %s failed logins", user.id, user.failed_login_attempts)
        raise AccessDenied(
            "ACCOUNT_DEACTIVATED",
            "Account deactivated due to too many failed login attempts. Please contact the state administrator.",
        )
    raise InvalidCredentials()


def _get_managed_user_or_404(
    *,
    db: Session,
    user_id: UUID,
    role: Role,
    district_code: str | None = None,
) -> User:
    query = db.query(User).filter(User.id == user_id, User.role == role.value)
    if district_code is not None:
        query = query.filter(User.district_code == district_code)
    user = query.first()
    if user is None:
        raise NotFound("USER_NOT_FOUND", "User not found")
    return user


def _require_district(current_user: User) -> str:
    if not current_user.district_code:
        raise AccessDenied("DISTRICT_REQUIRED", "No district is associated with this account")
    return current_user.district_code


def list_assistants_use_case(*, db: Session, current_user: User) -> list[User]:
    require_capability(current_user, "canManageAssistants")
    district_code = _require_district(current_user)
    return (
        db.query(User)
        .filter(User.role == Role.SPIO_ASSISTANT.value, User.district_code == district_code)
        .order_by(User.name.asc())
        .all()
    )


def create_assistant_use_case(
    *,
    db: Session,
    current_user: User,
    name: str | None,
    email: str | None,
    phone: str | None,
    password: str | None,
    address: str | None = None,
) -> User:
    """SPIO admin provisions an assistant in their own district."""
    require_capability(current_user, "canManageAssistants")
    district_code = _require_district(current_user)
    clean_name, clean_email, clean_phone = normalize_contact(name=name, email=email, phone=phone)
    validate_password(password)
    ensure_contact_available(db=db, email=clean_email, phone=clean_phone)

    assistant = build_user(
        role=Role.SPIO_ASSISTANT,
        name=clean_name,
        email=clean_email,
        phone=clean_phone,
        password=password,
        address=(address or "").strip() or None,
        district_code=district_code,
    )
    db.add(assistant)
    audit_admin_event(
        db=db,
        action="USER_CREATED",
        actor=current_user,
        entity_type="user",
        entity_id=str(assistant.id),
        details={"role": Role.SPIO_ASSISTANT.value, "districtCode": district_code},
    )
    commit_or_fail(db, operation="assistant creation")
    logger.info("Assistant %s created by SPIO %s", assistant.id, current_user.id)
    return assistant


def update_assistant_use_case(
    *,
    db: Session,
    current_user: User,
    assistant_id: UUID,
    name: str | None = None,
    email: str | None = None,
    phone: str | None = None,
    active: bool | None = None,
) -> User:
    require_capability(current_user, "canManageAssistants")
    district_code = _require_district(current_user)
    assistant = _get_managed_user_or_404(
        db=db, user_id=assistant_id, role=Role.SPIO_ASSISTANT, district_code=district_code
    )

    clean_name, clean_email, clean_phone = normalize_contact(
        name=name if name is not None else assistant.name,
        email=email if email is not None else assistant.email,
        phone=phone if phone is not None else assistant.phone,
    )
    if clean_email != assistant.email or clean_phone != assistant.phone:
        ensure_contact_available(db=db, email=clean_email, phone=clean_phone, exclude_user_id=assistant.id)

    changes: dict[str, object] = {}
    for field, value in (("name", clean_name), ("email", clean_email), ("phone", clean_phone)):
        if getattr(assistant, field) != value:
            changes[field] = value
            setattr(assistant, field, value)
    if active is not None and bool(active) != assistant.active:
        changes["active"] = bool(active)
        assistant.active = bool(active)
        if assistant.active:
            assistant.failed_login_attempts = 0

    if changes:
        audit_admin_event(
            db=db,
            action="USER_UPDATED",
            actor=current_user,
            entity_type="user",
            entity_id=str(assistant.id),
            details={"changes": sorted(changes)},
        )
        commit_or_fail(db, operation="assistant update")
    return assistant


def deactivate_assistant_use_case(*, db: Session, current_user: User, assistant_id: UUID) -> User:
    require_capability(current_user, "canManageAssistants")
    district_code = _require_district(current_user)
    assistant = _get_managed_user_or_404(
        db=db, user_id=assistant_id, role=Role.SPIO_ASSISTANT, district_code=district_code
    )
    # Idempotent.
    if not assistant.active:
        return assistant

    assistant.active = False
    audit_admin_event(
        db=db,
        action="USER_DEACTIVATED",
        actor=current_user,
        entity_type="user",
        entity_id=str(assistant.id),
    )
    commit_or_fail(db, operation="assistant deactivation")
    return assistant


def list_spios_use_case(*, db: Session, current_user: User) -> list[User]:
    require_capability(current_user, "canManageSpios")
    return (
        db.query(User)
        .filter(User.role == Role.SPIO_ADMIN.value)
        .order_by(User.district_code.asc(), User.name.asc())
        .all()
    )


def create_spio_use_case(
    *,
    db: Session,
    current_user: User,
    name: str | None,
    email: str | None,
    phone: str | None,
    password: str | None,
    district_code: str | None,
    address: str | None = None,
) -> User:
    """State admin provisions the SPIO admin of a district."""
    require_capability(current_user, "canManageSpios")
    code = (district_code or "").strip()
    if not code:
        raise ValidationFailed("DISTRICT_REQUIRED", "District code is required")
    if db.query(District).filter(District.district_code == code).first() is None:
        raise NotFound("DISTRICT_NOT_FOUND", "District not found")

    clean_name, clean_email, clean_phone = normalize_contact(name=name, email=email, phone=phone)
    validate_password(password)
    ensure_contact_available(db=db, email=clean_email, phone=clean_phone)

    spio = build_user(
        role=Role.SPIO_ADMIN,
        name=clean_name,
        email=clean_email,
        phone=clean_phone,
        password=password,
        address=(address or "").strip() or None,
        district_code=code,
    )
    db.add(spio)
    audit_admin_event(
        db=db,
        action="USER_CREATED",
        actor=current_user,
        entity_type="user",
        entity_id=str(spio.id),
        details={"role": Role.SPIO_ADMIN.value, "districtCode": code},
    )
    commit_or_fail(db, operation="SPIO creation")
    logger.info("SPIO %s created for district %s", spio.id, code)
    return spio


def reset_spio_password_use_case(
    *,
    db: Session,
    current_user: User,
    spio_id: UUID,
    new_password: str | None,
) -> User:
    """Set a new password; always reactivates the account and clears the lockout counter."""
    require_capability(current_user, "canManageSpios")
    validate_password(new_password)
    spio = _get_managed_user_or_404(db=db, user_id=spio_id, role=Role.SPIO_ADMIN)

    spio.password_hash = hash_password(new_password)
    spio.active = True
    spio.failed_login_attempts = 0
    audit_admin_event(
        db=db,
        action="PASSWORD_RESET_BY_ADMIN",
        actor=current_user,
        entity_type="user",
        entity_id=str(spio.id),
    )
    commit_or_fail(db, operation="SPIO password reset")
    logger.info("Password of SPIO %s reset by state admin %s", spio.id, current_user.id)
    return spio
