"""Human-readable request id allocation: ``{DEPT}-{YYYYMMDD}-{NNN}``."""
from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from ..config import settings
from ..models import RtiRequest

SEQUENCE_WIDTH = 3


def date_stamp(now: datetime) -> str:
    """Filing date in the configured timezone (naive values are taken as already local)."""
    if now.tzinfo is not None:
        now = now.astimezone(ZoneInfo(settings.REQUEST_ID_TIMEZONE))
    return now.strftime("%Y%m%d")


def format_request_id(department_code: str, stamp: str, sequence: int) -> str:
    return f"{department_code}-{stamp}-{sequence:0{SEQUENCE_WIDTH}d}"


def parse_sequence(request_id: str) -> int:
    try:
        return int(request_id.rsplit("-", 1)[-1])
    except ValueError:
        return 0


def next_request_id(*, db: Session, department_code: str, now: datetime) -> str:
    """Allocate the next id for ``department_code`` on the date of ``now``.

    Callers must hold the department row lock (see create_request_use_case);
    the lock is what serializes allocation, including the first id of a day.
    """
    stamp = date_stamp(now)
    prefix = f"{department_code}-{stamp}-"
    # Compare numerically: past 999 the suffix widens and string order breaks.
    existing = (
        db.query(RtiRequest.id)
        .filter(RtiRequest.id.startswith(prefix, autoescape=True))
        .all()
    )
    sequence = max((parse_sequence(row[0]) for row in existing), default=0) + 1
    return format_request_id(department_code, stamp, sequence)
