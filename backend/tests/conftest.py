from __future__ import annotations

import os
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Configure a disposable database before importing the application modules.
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["ENV"] = "test"

from rti_tracker.auth import hash_password  # noqa: E402
from rti_tracker.database import Base  # noqa: E402
from rti_tracker import models  # noqa: E402

PASSWORD = "password123"
_password_hash_cache: dict[str, str] = {}


def password_hash() -> str:
    # bcrypt is slow on purpose; every fixture user shares one hash.
    if PASSWORD not in _password_hash_cache:
        _password_hash_cache[PASSWORD] = hash_password(PASSWORD)
    return _password_hash_cache[PASSWORD]


class FakeRedis:
    """In-memory subset of the redis client API used by the app."""

    def __init__(self):
        self.values: dict[str, object] = {}
        self.ttls: dict[str, int] = {}

    def set(self, key, value, ex=None):
        self.values[key] = value
        if ex is not None:
            self.ttls[key] = int(ex)
        return True

    def exists(self, key):
        return 1 if key in self.values else 0

    def incr(self, key):
        self.values[key] = int(self.values.get(key, 0)) + 1
        return self.values[key]

    def expire(self, key, seconds):
        self.ttls[key] = int(seconds)
        return True

    def ttl(self, key):
        return self.ttls.get(key, -1)


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def _make_user(db, *, role, name, email, phone, district_code=None, department_code=None, active=True):
    user = models.User(
        name=name,
        email=email,
        phone=phone,
        password_hash=password_hash(),
        role=role.value,
        district_code=district_code,
        department_code=department_code,
        active=active,
        failed_login_attempts=0,
    )
    db.add(user)
    return user


@pytest.fixture()
def world(db_session):
    """Two districts with one department each and a user for every role."""
    db = db_session
    db.add_all([
        models.District(
            state_id=1, district_id=1, state_name="Karnataka",
            district_name="Kalaburagi", district_code="KAM",
        ),
        models.District(
            state_id=1, district_id=2, state_name="Karnataka",
            district_name="Bengaluru Urban", district_code="BLR",
        ),
    ])
    db.flush()
    db.add_all([
        models.Department(code="KAM001", name_en="Revenue Department", district_code="KAM"),
        models.Department(code="BLR001", name_en="Education Department", district_code="BLR"),
    ])
    db.flush()

    Role = models.Role
    ns = SimpleNamespace(
        citizen=_make_user(db, role=Role.CITIZEN, name="Asha Citizen",
                           email="asha@example.com", phone="9100000001"),
        other_citizen=_make_user(db, role=Role.CITIZEN, name="Ravi Citizen",
                                 email="ravi@example.com", phone="9100000002"),
        pio=_make_user(db, role=Role.PIO, name="Revenue PIO",
                       email="pio.kam001@example.com", phone="9100000003", department_code="KAM001"),
        blr_pio=_make_user(db, role=Role.PIO, name="Education PIO",
                           email="pio.blr001@example.com", phone="9100000004", department_code="BLR001"),
        spio=_make_user(db, role=Role.SPIO_ADMIN, name="Kalaburagi SPIO",
                        email="spio.kam@example.com", phone="9100000005", district_code="KAM"),
        assistant_a=_make_user(db, role=Role.SPIO_ASSISTANT, name="Assistant A",
                               email="a.kam@example.com", phone="9100000006", district_code="KAM"),
        assistant_b=_make_user(db, role=Role.SPIO_ASSISTANT, name="Assistant B",
                               email="b.kam@example.com", phone="9100000007", district_code="KAM"),
        blr_assistant=_make_user(db, role=Role.SPIO_ASSISTANT, name="Assistant BLR",
                                 email="a.blr@example.com", phone="9100000008", district_code="BLR"),
        state_admin=_make_user(db, role=Role.STATE_ADMIN, name="State Admin",
                               email="state@example.com", phone="9100000009"),
    )
    db.commit()
    return ns


@pytest.fixture()
def fake_redis():
    return FakeRedis()


@pytest.fixture()
def client(session_factory, world, fake_redis):
    from fastapi.testclient import TestClient

    from rti_tracker.database import get_db
    from rti_tracker.main import app
    from rti_tracker.config import settings
    from rti_tracker.revocation import TokenRevocationStore, get_revocation_store
    from rti_tracker.services.login_throttle import LoginThrottle, get_login_throttle

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_revocation_store] = lambda: TokenRevocationStore(fake_redis)
    app.dependency_overrides[get_login_throttle] = lambda: LoginThrottle(
        fake_redis, limit=settings.AUTH_LOGIN_IP_LIMIT_PER_MINUTE
    )
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
