"""Initial schema: districts, departments, users, requests, request log, notifications, audit.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "master_district",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("state_id", sa.Integer(), nullable=False),
        sa.Column("district_id", sa.Integer(), nullable=False),
        sa.Column("state_name", sa.String(length=100), nullable=False),
        sa.Column("district_name", sa.String(length=100), nullable=False),
        sa.Column("district_code", sa.String(length=10), nullable=False),
    )
    op.create_index("ix_master_district_district_code", "master_district", ["district_code"], unique=True)

    op.create_table(
        "departments",
        sa.Column("code", sa.String(length=20), primary_key=True),
        sa.Column("name_en", sa.String(length=255), nullable=False),
        sa.Column(
            "district_code",
            sa.String(length=10),
            sa.ForeignKey("master_district.district_code"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
    )
    op.create_index("ix_departments_district_code", "departments", ["district_code"])

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=1), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("district_code", sa.String(length=10), nullable=True),
        sa.Column("department_code", sa.String(length=20), sa.ForeignKey("departments.code"), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("failed_login_attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.CheckConstraint("role IN ('1', '2', '3', '4', '5')", name="chk_user_role"),
        sa.UniqueConstraint("phone", name="uq_users_phone"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])
    op.create_index("ix_users_district_code", "users", ["district_code"])
    op.create_index("ix_users_department_code", "users", ["department_code"])

    op.create_table(
        "rti_requests",
        sa.Column("id", sa.String(length=40), primary_key=True),
        sa.Column("citizen_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("department", sa.String(length=20), sa.ForeignKey("departments.code"), nullable=False),
        sa.Column("subject", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="Pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.Column("attachment", sa.LargeBinary(), nullable=True),
        sa.Column("file_name", sa.String(length=255), nullable=True),
        sa.Column("response_file", sa.LargeBinary(), nullable=True),
        sa.Column("response_file_name", sa.String(length=255), nullable=True),
        sa.Column("response_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("responded_by", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("assigned_to", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("assignment_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("review_status", sa.String(length=20), nullable=True),
        sa.Column("assistant_remarks", sa.Text(), nullable=True),
        sa.CheckConstraint(
            "status IN ('Pending', 'Processing', 'Approved', 'Rejected')",
            name="chk_rti_request_status",
        ),
        sa.CheckConstraint(
            "review_status IS NULL OR review_status IN ('pending', 'reviewed')",
            name="chk_rti_request_review_status",
        ),
    )
    op.create_index("ix_rti_requests_citizen_id", "rti_requests", ["citizen_id"])
    op.create_index("ix_rti_requests_department", "rti_requests", ["department"])
    op.create_index("ix_rti_requests_status", "rti_requests", ["status"])
    op.create_index("ix_rti_requests_created_at", "rti_requests", ["created_at"])
    op.create_index("ix_rti_requests_assigned_to", "rti_requests", ["assigned_to"])

    op.create_table(
        "rti_logs",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column(
            "request_id",
            sa.String(length=40),
            sa.ForeignKey("rti_requests.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("action_type", sa.String(length=30), nullable=False),
        sa.Column("old_value", sa.Text(), nullable=True),
        sa.Column("new_value", sa.Text(), nullable=True),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column("performed_by", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint(
            "action_type IN ('STATUS_CHANGE', 'ASSIGNMENT', 'REMARK_ADDED', 'ATTACHMENT_ADDED', 'RESPONSE_ADDED')",
            name="chk_rti_log_action_type",
        ),
    )
    op.create_index("idx_rti_logs_request", "rti_logs", ["request_id", "id"])
    op.create_index("idx_rti_logs_request_action", "rti_logs", ["request_id", "action_type", "id"])
    op.create_index("idx_rti_logs_action_value", "rti_logs", ["action_type", "new_value"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "request_id",
            sa.String(length=40),
            sa.ForeignKey("rti_requests.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("notification_type", sa.String(length=30), nullable=False),
        sa.Column("via", sa.String(length=10), nullable=False, server_default="app"),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=10), nullable=False, server_default="sent"),
        sa.Column("sent_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.CheckConstraint(
            "notification_type IN ('REQUEST_CREATED', 'STATUS_CHANGED', 'REQUEST_ASSIGNED', "
            "'REMARK_ADDED', 'REQUEST_FORWARDED')",
            name="chk_notification_type",
        ),
        sa.CheckConstraint("via IN ('email', 'sms', 'app')", name="chk_notification_via"),
        sa.CheckConstraint("status IN ('sent', 'read')", name="chk_notification_status"),
    )
    op.create_index("idx_notifications_user_status", "notifications", ["user_id", "status"])
    op.create_index("ix_notifications_sent_at", "notifications", ["sent_at"])

    op.create_table(
        "audit_events",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("entity_type", sa.String(length=20), nullable=False),
        sa.Column("entity_id", sa.String(length=64), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("user_name", sa.String(length=255), nullable=True),
        sa.Column("details", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.CheckConstraint(
            "action IN ('user_login', 'user_logout', 'LOGIN_FAILED', "
            "'ACCOUNT_DEACTIVATED', 'PASSWORD_RESET_BY_ADMIN', 'USER_CREATED', 'USER_UPDATED', "
            "'USER_DEACTIVATED', 'DEPARTMENT_CREATED', 'DEPARTMENT_UPDATED', 'DEPARTMENT_DELETED')",
            name="chk_audit_action",
        ),
        sa.CheckConstraint("entity_type IN ('user', 'department')", name="chk_audit_entity_type"),
    )
    op.create_index("ix_audit_events_action", "audit_events", ["action"])
    op.create_index("ix_audit_events_user_id", "audit_events", ["user_id"])
    op.create_index("ix_audit_events_created_at", "audit_events", ["created_at"])


def downgrade() -> None:
    op.drop_table("audit_events")
    op.drop_table("notifications")
    op.drop_table("rti_logs")
    op.drop_table("rti_requests")
    op.drop_table("users")
    op.drop_table("departments")
    op.drop_table("master_district")
