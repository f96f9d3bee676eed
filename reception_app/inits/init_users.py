#!/usr/bin/env python3
"""
Seed the default front-office accounts.

Passwords come from SEED_<ROLE>_PASSWORD environment variables when set.
Existing accounts are left untouched.
"""
import logging
import os

from dotenv import load_dotenv

load_dotenv()

from reception_app.database import SessionLocal, engine  # noqa: E402
from reception_app.models import Base, User, UserRole  # noqa: E402
from reception_app.auth import get_password_hash  # noqa: E402

logger = logging.getLogger(__name__)

DEFAULT_USERS = [
    {"email": "admin@reception.local", "name": "System Administrator", "role": UserRole.ADMIN, "department": "Operations"},
    {"email": "reception@reception.local", "name": "Front Desk", "role": UserRole.RECEPTION, "department": "Operations"},
    {"email": "security@reception.local", "name": "Gate Security", "role": UserRole.SECURITY, "department": "Security"},
    {"email": "employee@reception.local", "name": "Regular Employee", "role": UserRole.EMPLOYEE, "department": "IT"},
]


def _password_for(role: UserRole) -> str:
    return os.getenv(f"SEED_{role.value.upper()}_PASSWORD") or f"{role.value}-change-me"


def init_users():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        for user_data in DEFAULT_USERS:
            existing_user = db.query(User).filter(User.email == user_data["email"]).first()
            if existing_user:
                logger.info(f"User {user_data['email']} already exists")
                continue

            db.add(User(
                **user_data,
                hashed_password=get_password_hash(_password_for(user_data["role"])),
                is_active=True,
            ))
            logger.info(f"Created user {user_data['email']} with role {user_data['role']}")

        db.commit()
    except Exception as e:
        logger.error(f"Seeding users failed: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_users()
