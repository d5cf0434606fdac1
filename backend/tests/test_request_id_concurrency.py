from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine, event

from rti_tracker.database import Base
from rti_tracker.models import RtiLog, RtiRequest
from rti_tracker.use_cases.request_lifecycle import create_request_use_case

FILERS = 8


@pytest.fixture()
def engine(tmp_path):
    """File-backed SQLite where every transaction takes the write lock up front.

    SQLite drops ``FOR UPDATE``; ``BEGIN IMMEDIATE`` gives the same serialization
    the department row lock gives on Postgres.
    """
    engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'rti.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, _record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


def test_concurrent_filings_get_distinct_gapless_ids(session_factory, world) -> None:
    now = datetime(2024, 3, 15, 4, 30, tzinfo=timezone.utc)

    def file_one(n):
        session = session_factory()
        try:
            return create_request_use_case(
                db=session,
                current_user=world.citizen,
                department="KAM001",
                subject=f"Request {n}",
                description="Filed in parallel",
                now=now,
            ).id
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=FILERS) as executor:
        ids = list(executor.map(file_one, range(FILERS)))

    expected = [f"KAM001-20240315-{n:03d}" for n in range(1, FILERS + 1)]
    assert sorted(ids) == expected

    session = session_factory()
    try:
        assert sorted(row[0] for row in session.query(RtiRequest.id).all()) == expected
        assert session.query(RtiLog).count() == FILERS
    finally:
        session.close()
