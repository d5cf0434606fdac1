"""SQLAlchemy models for RTI requests, their audit log and the people who handle them."""
import enum
import uuid

from sqlalchemy import (
    JSON, BigInteger, Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index,
    Integer, LargeBinary, String, Text, Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import deferred, relationship
from sqlalchemy.sql import func

from .database import Base


class Role(str, enum.Enum):
    """Closed set of actor roles; values are the persisted codes."""

    CITIZEN = "1"
    PIO = "2"
    SPIO_ADMIN = "3"
    SPIO_ASSISTANT = "4"
    STATE_ADMIN = "5"


class RequestStatus(str, enum.Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class LogAction(str, enum.Enum):
    """Fixed action tokens written to ``rti_logs.action_type``."""

    STATUS_CHANGE = "STATUS_CHANGE"
    ASSIGNMENT = "ASSIGNMENT"
    REMARK_ADDED = "REMARK_ADDED"
    ATTACHMENT_ADDED = "ATTACHMENT_ADDED"
    RESPONSE_ADDED = "RESPONSE_ADDED"


class ReviewStatus(str, enum.Enum):
    PENDING = "pending"
    REVIEWED = "reviewed"


class NotificationType(str, enum.Enum):
    REQUEST_CREATED = "REQUEST_CREATED"
    STATUS_CHANGED = "STATUS_CHANGED"
    REQUEST_ASSIGNED = "REQUEST_ASSIGNED"
    REMARK_ADDED = "REMARK_ADDED"
    REQUEST_FORWARDED = "REQUEST_FORWARDED"


class District(Base):
    """Reference data: state/district names and codes."""
    __tablename__ = "master_district"

    id = Column(Integer, primary_key=True, autoincrement=True)
    state_id = Column(Integer, nullable=False)
    district_id = Column(Integer, nullable=False)
    state_name = Column(String(100), nullable=False)
    district_name = Column(String(100), nullable=False)
    district_code = Column(String(10), unique=True, nullable=False, index=True)


class Department(Base):
    """Administrative unit owning requests; code is ``{district_code}{NNN}``."""
    __tablename__ = "departments"

    code = Column(String(20), primary_key=True)
    name_en = Column(String(255), nullable=False)
    district_code = Column(String(10), ForeignKey("master_district.district_code"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    district = relationship("District")


class User(Base):
    """Actor record for every role."""
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(20), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(1), nullable=False, index=True)
    address = Column(Text, nullable=True)
    district_code = Column(String(10), nullable=True, index=True)  # SPIO admin / assistant
    department_code = Column(String(20), ForeignKey("departments.code"), nullable=True, index=True)  # PIO
    active = Column(Boolean, nullable=False, default=True)
    # Consecutive failed logins; SPIO admins are deactivated at the configured threshold.
    failed_login_attempts = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(role.in_([r.value for r in Role]), name="chk_user_role"),
    )

    department = relationship("Department", foreign_keys=[department_code])


class RtiRequest(Base):
    """One citizen-filed request."""
    __tablename__ = "rti_requests"

    id = Column(String(40), primary_key=True)  # {DEPT}-{YYYYMMDD}-{NNN}
    citizen_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    department = Column(String(20), ForeignKey("departments.code"), nullable=False, index=True)
    subject = Column(String(500), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default=RequestStatus.PENDING.value, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    attachment = deferred(Column(LargeBinary, nullable=True))
    file_name = Column(String(255), nullable=True)

    response_file = deferred(Column(LargeBinary, nullable=True))
    response_file_name = Column(String(255), nullable=True)
    response_date = Column(DateTime(timezone=True), nullable=True)
    responded_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    # Assignment projection. Written only together with the ASSIGNMENT / REMARK_ADDED
    # log rows it summarizes; the log stays authoritative.
    assigned_to = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True, index=True)
    assignment_date = Column(DateTime(timezone=True), nullable=True)
    review_status = Column(String(20), nullable=True)
    assistant_remarks = Column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint(status.in_([s.value for s in RequestStatus]), name="chk_rti_request_status"),
        CheckConstraint(
            "review_status IS NULL OR review_status IN ('pending', 'reviewed')",
            name="chk_rti_request_review_status",
        ),
    )

    citizen = relationship("User", foreign_keys=[citizen_id])
    assignee = relationship("User", foreign_keys=[assigned_to])
    department_ref = relationship("Department")
    logs = relationship("RtiLog", back_populates="request", passive_deletes=True, order_by="RtiLog.id")


class RtiLog(Base):
    """Append-only audit entry for a request.

    ``id`` is the insertion sequence and the only ordering key. ``created_at``
    is informational; Postgres ``now()`` is the transaction start, which can
    predate rows committed earlier by a transaction holding the request lock.
    """
    __tablename__ = "rti_logs"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    request_id = Column(String(40), ForeignKey("rti_requests.id", ondelete="CASCADE"), nullable=False)
    action_type = Column(String(30), nullable=False)
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    remarks = Column(Text, nullable=True)
    performed_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint(action_type.in_([a.value for a in LogAction]), name="chk_rti_log_action_type"),
        Index("idx_rti_logs_request", "request_id", "id"),
        Index("idx_rti_logs_request_action", "request_id", "action_type", "id"),
        Index("idx_rti_logs_action_value", "action_type", "new_value"),
    )

    request = relationship("RtiRequest", back_populates="logs")
    actor = relationship("User", foreign_keys=[performed_by])


class Notification(Base):
    """Notification fact for a user; delivery happens elsewhere."""
    __tablename__ = "notifications"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    request_id = Column(String(40), ForeignKey("rti_requests.id", ondelete="CASCADE"), nullable=True)
    notification_type = Column(String(30), nullable=False)
    via = Column(String(10), nullable=False, default="app")
    message = Column(Text, nullable=False)
    status = Column(String(10), nullable=False, default="sent")
    sent_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    __table_args__ = (
        CheckConstraint(notification_type.in_([t.value for t in NotificationType]), name="chk_notification_type"),
        CheckConstraint(via.in_(["email", "sms", "app"]), name="chk_notification_via"),
        CheckConstraint(status.in_(["sent", "read"]), name="chk_notification_status"),
        Index("idx_notifications_user_status", "user_id", "status"),
    )

    request = relationship("RtiRequest")


class AuditEvent(Base):
    """Security / administration event (logins, user and department management)."""
    __tablename__ = "audit_events"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    action = Column(String(50), nullable=False, index=True)
    entity_type = Column(String(20), nullable=False)
    entity_id = Column(String(64), nullable=False)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True, index=True)
    user_name = Column(String(255), nullable=True)
    details = Column(JSON().with_variant(JSONB, "postgresql"), default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    __table_args__ = (
        CheckConstraint(
            action.in_([
                'user_login', 'user_logout', 'LOGIN_FAILED',
                'ACCOUNT_DEACTIVATED', 'PASSWORD_RESET_BY_ADMIN',
                'USER_CREATED', 'USER_UPDATED', 'USER_DEACTIVATED',
                'DEPARTMENT_CREATED', 'DEPARTMENT_UPDATED', 'DEPARTMENT_DELETED',
            ]),
            name='chk_audit_action'
        ),
        CheckConstraint(
            entity_type.in_(['user', 'department']),
            name='chk_audit_entity_type'
        ),
    )
