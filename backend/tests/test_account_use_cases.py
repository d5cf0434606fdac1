from __future__ import annotations

import pytest

from rti_tracker.auth import verify_password
from rti_tracker.domain_errors import DomainError
from rti_tracker.models import AuditEvent, User
from rti_tracker.use_cases.accounts import (
    authenticate_use_case,
    create_assistant_use_case,
    create_spio_use_case,
    deactivate_assistant_use_case,
    list_assistants_use_case,
    register_citizen_use_case,
    reset_spio_password_use_case,
    update_assistant_use_case,
)

PASSWORD = "password123"


def _audit_actions(db, user_id):
    return [
        event.action
        for event in db.query(AuditEvent).filter(AuditEvent.entity_id == str(user_id)).all()
    ]


def test_register_citizen_normalizes_contact(db_session) -> None:
    user = register_citizen_use_case(
        db=db_session,
        name="  Meena  ",
        email="  Meena@Example.COM ",
        phone="9876543210",
        password="long-enough",
    )

    assert user.role == "1"
    assert user.email == "meena@example.com"
    assert user.name == "Meena"
    assert user.active is True
    assert verify_password("long-enough", user.password_hash)


@pytest.mark.parametrize(
    ("overrides", "code"),
    [
        ({"name": ""}, "ACCOUNT_FIELDS_REQUIRED"),
        ({"email": "not-an-email"}, "INVALID_EMAIL"),
        ({"phone": "12345"}, "INVALID_PHONE"),
        ({"password": "short"}, "WEAK_PASSWORD"),
    ],
)
def test_register_citizen_validation(db_session, overrides, code) -> None:
    values = {"name": "Meena", "email": "meena@example.com", "phone": "9876543210", "password": "long-enough"}
    values.update(overrides)

    with pytest.raises(DomainError) as exc:
        register_citizen_use_case(db=db_session, **values)

    assert exc.value.http_status == 400
    assert exc.value.code == code
    assert db_session.query(User).count() == 0


def test_register_rejects_taken_email_or_phone(db_session, world) -> None:
    with pytest.raises(DomainError) as exc:
        register_citizen_use_case(
            db=db_session,
            name="Copy",
            email="ASHA@example.com",
            phone="9000099999",
            password="long-enough",
        )
    assert exc.value.code == "USER_ALREADY_EXISTS"

    with pytest.raises(DomainError) as exc:
        register_citizen_use_case(
            db=db_session,
            name="Copy",
            email="fresh@example.com",
            phone=world.citizen.phone,
            password="long-enough",
        )
    assert exc.value.code == "USER_ALREADY_EXISTS"


def test_authenticate_success_resets_counter(db_session, world) -> None:
    world.pio.failed_login_attempts = 2
    db_session.commit()

    user = authenticate_use_case(db=db_session, email="PIO.KAM001@example.com", password=PASSWORD)

    assert user.id == world.pio.id
    assert user.failed_login_attempts == 0


def test_authenticate_unknown_email_and_wrong_password(db_session, world) -> None:
    for email, password in (("nobody@example.com", PASSWORD), (world.pio.email, "wrong-password")):
        with pytest.raises(DomainError) as exc:
            authenticate_use_case(db=db_session, email=email, password=password)
        assert exc.value.http_status == 401
        assert exc.value.code == "INVALID_CREDENTIALS"

    assert world.pio.failed_login_attempts == 1
    assert world.pio.active is True
    assert _audit_actions(db_session, world.pio.id) == ["LOGIN_FAILED"]


def test_authenticate_requires_both_fields(db_session) -> None:
    with pytest.raises(DomainError) as exc:
        authenticate_use_case(db=db_session, email="", password=None)
    assert exc.value.code == "CREDENTIALS_REQUIRED"


def test_spio_is_deactivated_after_three_failed_logins(db_session, world) -> None:
    for _ in range(2):
        with pytest.raises(DomainError) as exc:
            authenticate_use_case(db=db_session, email=world.spio.email, password="wrong-password")
        assert exc.value.code == "INVALID_CREDENTIALS"

    with pytest.raises(DomainError) as exc:
        authenticate_use_case(db=db_session, email=world.spio.email, password="wrong-password")
    assert exc.value.http_status == 403
    assert exc.value.code == "ACCOUNT_DEACTIVATED"

    db_session.refresh(world.spio)
    assert world.spio.active is False
    assert world.spio.failed_login_attempts == 3
    assert "ACCOUNT_DEACTIVATED" in _audit_actions(db_session, world.spio.id)

    # Even the right password no longer works.
    with pytest.raises(DomainError) as exc:
        authenticate_use_case(db=db_session, email=world.spio.email, password=PASSWORD)
    assert exc.value.code == "ACCOUNT_INACTIVE"


def test_other_roles_are_not_locked_out(db_session, world) -> None:
    for _ in range(5):
        with pytest.raises(DomainError):
            authenticate_use_case(db=db_session, email=world.pio.email, password="wrong-password")

    assert world.pio.active is True
    assert authenticate_use_case(db=db_session, email=world.pio.email, password=PASSWORD).id == world.pio.id


def test_state_admin_reset_reactivates_spio(db_session, world) -> None:
    world.spio.active = False
    world.spio.failed_login_attempts = 3
    db_session.commit()

    reset_spio_password_use_case(
        db=db_session,
        current_user=world.state_admin,
        spio_id=world.spio.id,
        new_password="brand-new-pass",
    )

    assert world.spio.active is True
    assert world.spio.failed_login_attempts == 0
    assert authenticate_use_case(db=db_session, email=world.spio.email, password="brand-new-pass").id == world.spio.id
    assert "PASSWORD_RESET_BY_ADMIN" in _audit_actions(db_session, world.spio.id)


def test_only_state_admin_resets_spio_passwords(db_session, world) -> None:
    with pytest.raises(DomainError) as exc:
        reset_spio_password_use_case(
            db=db_session,
            current_user=world.spio,
            spio_id=world.spio.id,
            new_password="brand-new-pass",
        )
    assert exc.value.http_status == 403


def test_create_spio_requires_known_district(db_session, world) -> None:
    with pytest.raises(DomainError) as exc:
        create_spio_use_case(
            db=db_session,
            current_user=world.state_admin,
            name="New SPIO",
            email="spio.xyz@example.com",
            phone="9200000001",
            password="long-enough",
            district_code="XYZ",
        )
    assert exc.value.code == "DISTRICT_NOT_FOUND"

    spio = create_spio_use_case(
        db=db_session,
        current_user=world.state_admin,
        name="New SPIO",
        email="spio.blr@example.com",
        phone="9200000001",
        password="long-enough",
        district_code="BLR",
    )
    assert spio.role == "3"
    assert spio.district_code == "BLR"


def test_spio_manages_assistants_of_own_district(db_session, world) -> None:
    assistant = create_assistant_use_case(
        db=db_session,
        current_user=world.spio,
        name="Assistant C",
        email="c.kam@example.com",
        phone="9200000002",
        password="long-enough",
    )
    assert assistant.role == "4"
    assert assistant.district_code == "KAM"

    names = [a.name for a in list_assistants_use_case(db=db_session, current_user=world.spio)]
    assert names == ["Assistant A", "Assistant B", "Assistant C"]

    update_assistant_use_case(
        db=db_session,
        current_user=world.spio,
        assistant_id=assistant.id,
        name="Assistant C (Ward 4)",
    )
    assert assistant.name == "Assistant C (Ward 4)"

    deactivate_assistant_use_case(db=db_session, current_user=world.spio, assistant_id=assistant.id)
    deactivate_assistant_use_case(db=db_session, current_user=world.spio, assistant_id=assistant.id)
    assert assistant.active is False
    assert _audit_actions(db_session, assistant.id).count("USER_DEACTIVATED") == 1

    with pytest.raises(DomainError) as exc:
        update_assistant_use_case(
            db=db_session,
            current_user=world.spio,
            assistant_id=world.blr_assistant.id,
            name="Hijack",
        )
    assert exc.value.code == "USER_NOT_FOUND"
