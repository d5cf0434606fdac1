"""Request audit log: the single writer path plus the read patterns built on it."""
from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.orm import Session, joinedload

from ..models import LogAction, RtiLog


def append_log_entry(
    *,
    db: Session,
    request_id: str,
    action_type: LogAction,
    performed_by: UUID,
    old_value: str | None = None,
    new_value: str | None = None,
    remarks: str | None = None,
) -> RtiLog:
    """Stage one log row in the caller's transaction. Entries are never updated.

    ``created_at`` is stamped here, after the caller took its row locks, not at
    transaction start.
    """
    entry = RtiLog(
        request_id=request_id,
        action_type=LogAction(action_type).value,
        old_value=old_value,
        new_value=new_value,
        remarks=remarks,
        performed_by=performed_by,
        created_at=datetime.now(timezone.utc),
    )
    db.add(entry)
    return entry


def timeline(*, db: Session, request_id: str) -> list[RtiLog]:
    """All entries for a request in insertion order, actors preloaded."""
    return (
        db.query(RtiLog)
        .options(joinedload(RtiLog.actor))
        .filter(RtiLog.request_id == request_id)
        .order_by(RtiLog.id.asc())
        .all()
    )


def latest_entry(*, db: Session, request_id: str, action_type: LogAction) -> RtiLog | None:
    return (
        db.query(RtiLog)
        .filter(
            RtiLog.request_id == request_id,
            RtiLog.action_type == LogAction(action_type).value,
        )
        .order_by(RtiLog.id.desc())
        .first()
    )


def replay_status(entries: list[RtiLog]) -> str | None:
    """Final status implied by the STATUS_CHANGE entries of a timeline."""
    status = None
    for entry in entries:
        if entry.action_type == LogAction.STATUS_CHANGE.value:
            status = entry.new_value
    return status
