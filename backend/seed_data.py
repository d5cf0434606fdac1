"""Seed database with reference districts and demo staff accounts."""
import logging

from sqlalchemy.exc import SQLAlchemyError

from rti_tracker.auth import hash_password
from rti_tracker.database import SessionLocal
from rti_tracker.models import Department, District, Role, User

logger = logging.getLogger(__name__)

DISTRICTS = [
    # state_id, district_id, state_name, district_name, district_code
    (1, 1, "Karnataka", "Bengaluru Urban", "BLR"),
    (1, 2, "Karnataka", "Mysuru", "MYS"),
    (1, 3, "Karnataka", "Kalaburagi", "KAM"),
]

DEMO_USERS = [
    {
        "name": "State Administrator",
        "email": "state.admin@rti.local",
        "phone": "9000000001",
        "password": "stateadmin123",
        "role": Role.STATE_ADMIN,
    },
    {
        "name": "Kalaburagi SPIO",
        "email": "spio.kam@rti.local",
        "phone": "9000000002",
        "password": "spiokam123",
        "role": Role.SPIO_ADMIN,
        "district_code": "KAM",
    },
    {
        "name": "Kalaburagi Assistant",
        "email": "assistant.kam@rti.local",
        "phone": "9000000003",
        "password": "assistant123",
        "role": Role.SPIO_ASSISTANT,
        "district_code": "KAM",
    },
    {
        "name": "Revenue PIO",
        "email": "pio.kam001@rti.local",
        "phone": "9000000004",
        "password": "piokam123",
        "role": Role.PIO,
        "department_code": "KAM001",
    },
    {
        "name": "Demo Citizen",
        "email": "citizen@rti.local",
        "phone": "9000000005",
        "password": "citizen123",
        "role": Role.CITIZEN,
        "address": "Station Road, Kalaburagi",
    },
]


def seed():
    """Insert missing seed rows; existing rows are left untouched."""
    db = SessionLocal()

    try:
        for state_id, district_id, state_name, district_name, code in DISTRICTS:
            if not db.query(District).filter(District.district_code == code).first():
                db.add(
                    District(
                        state_id=state_id,
                        district_id=district_id,
                        state_name=state_name,
                        district_name=district_name,
                        district_code=code,
                    )
                )
        db.flush()

        if not db.query(Department).filter(Department.code == "KAM001").first():
            db.add(Department(code="KAM001", name_en="Revenue Department", district_code="KAM"))
            db.flush()

        for data in DEMO_USERS:
            if db.query(User).filter(User.email == data["email"]).first():
                continue
            db.add(
                User(
                    name=data["name"],
                    email=data["email"],
                    phone=data["phone"],
                    password_hash=hash_password(data["password"]),
                    role=data["role"].value,
                    address=data.get("address"),
                    district_code=data.get("district_code"),
                    department_code=data.get("department_code"),
                    active=True,
                )
            )

        db.commit()
        logger.info("Seed data loaded: %s districts, %s demo users", len(DISTRICTS), len(DEMO_USERS))
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Seeding failed; rolled back")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    seed()
