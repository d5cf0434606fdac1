"""Security helpers (RBAC, district/department scoping, and access checks)."""

from __future__ import annotations

from typing import Any

from sqlalchemy import false

from .auth import check_permission
from .models import Role, RtiRequest, User


def request_in_scope(request: RtiRequest, user: User) -> bool:
    """Record-level scope: own request, own department, own district, or everything."""
    role = user.role
    if role == Role.STATE_ADMIN.value:
        return True
    if role == Role.CITIZEN.value:
        return request.citizen_id == user.id
    if role == Role.PIO.value:
        return bool(user.department_code) and request.department == user.department_code
    if role in (Role.SPIO_ADMIN.value, Role.SPIO_ASSISTANT.value):
        return bool(user.district_code) and str(request.department).startswith(user.district_code)
    return False


def can(user: User, permission: str, request: RtiRequest | None = None) -> bool:
    """Single policy check: role capability plus, when given, the record scope."""
    if not check_permission(user, permission):
        return False
    if request is None:
        return True
    return request_in_scope(request, user)


def apply_request_scope(query: Any, user: User):
    """Restrict an RtiRequest query to the rows ``user`` may see."""
    role = user.role
    if role == Role.STATE_ADMIN.value:
        return query
    if role == Role.CITIZEN.value:
        return query.filter(RtiRequest.citizen_id == user.id)
    if role == Role.PIO.value and user.department_code:
        return query.filter(RtiRequest.department == user.department_code)
    if role in (Role.SPIO_ADMIN.value, Role.SPIO_ASSISTANT.value) and user.district_code:
        return query.filter(RtiRequest.department.startswith(user.district_code, autoescape=True))
    return query.filter(false())
