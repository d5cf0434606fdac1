"""Pydantic schemas for API (camelCase on the wire, snake_case in Python)."""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime
from uuid import UUID


class ApiModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


# Users
class UserPublic(ApiModel):
    """Actor profile safe to show on a timeline."""
    name: str
    email: str
    phone: str


class UserResponse(UserPublic):
    id: UUID
    role: str
    address: Optional[str] = None
    district_code: Optional[str] = None
    department_code: Optional[str] = None
    active: bool
    created_at: Optional[datetime] = None


class StaffCreate(ApiModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None
    address: Optional[str] = None


class SpioCreate(StaffCreate):
    district_code: Optional[str] = None


class AssistantUpdate(ApiModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    active: Optional[bool] = None


class PasswordResetRequest(ApiModel):
    new_password: Optional[str] = None


# Auth
class RegisterRequest(StaffCreate):
    pass


class LoginRequest(ApiModel):
    email: Optional[str] = None
    password: Optional[str] = None


class TokenResponse(ApiModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


# Requests
class RequestCreatedResponse(ApiModel):
    id: str
    subject: str
    status: str
    date: datetime
    file_name: Optional[str] = None


class RequestResponse(ApiModel):
    id: str
    citizen_id: UUID
    department: str
    subject: str
    description: str
    status: str
    created_at: Optional[datetime] = None
    file_name: Optional[str] = None
    response_file_name: Optional[str] = None
    response_date: Optional[datetime] = None
    responded_by: Optional[UUID] = None
    rejection_reason: Optional[str] = None
    assigned_to: Optional[UUID] = None
    assignment_date: Optional[datetime] = None
    review_status: Optional[str] = None
    assistant_remarks: Optional[str] = None


class ReviewedRequestResponse(RequestResponse):
    assignee: Optional[UserPublic] = None


class RequestStatsResponse(ApiModel):
    total: int
    pending: int
    processing: int
    approved: int
    rejected: int


class TimelineEntryResponse(ApiModel):
    id: int
    action_type: str
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    remarks: Optional[str] = None
    actor: Optional[UserPublic] = None
    created_at: datetime


class RejectRequest(ApiModel):
    justification: Optional[str] = None


class MessageResponse(ApiModel):
    message: str


# Assignment
class AssignRequest(ApiModel):
    assistant_id: str
    remarks: Optional[str] = None


class ReviewRequest(ApiModel):
    remarks: Optional[str] = None
    verification_status: Optional[str] = None


class AssignedStats(ApiModel):
    total_assigned: int
    pending_review: int
    reviewed: int


class AssignedRequestsResponse(ApiModel):
    requests: list[RequestResponse]
    stats: AssignedStats


# Departments / districts
class DepartmentResponse(ApiModel):
    code: str
    name_en: str
    district_code: str


class DepartmentCreate(ApiModel):
    name_en: Optional[str] = None
    pio_name: Optional[str] = None
    pio_email: Optional[str] = None
    pio_phone: Optional[str] = None
    pio_password: Optional[str] = None


class DepartmentUpdate(ApiModel):
    name_en: Optional[str] = None


class DepartmentCreatedResponse(ApiModel):
    department: DepartmentResponse
    pio: UserResponse


class DistrictResponse(ApiModel):
    state_id: int
    district_id: int
    state_name: str
    district_name: str
    district_code: str


# Notifications
class NotificationResponse(ApiModel):
    id: UUID
    request_id: Optional[str] = None
    notification_type: str
    via: str
    message: str
    status: str
    sent_at: Optional[datetime] = None


class MarkAllReadResponse(ApiModel):
    updated: int
