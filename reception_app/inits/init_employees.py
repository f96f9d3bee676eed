#!/usr/bin/env python3
"""
Seed a sample company directory. Idempotent on employee_id.
"""
import logging

from dotenv import load_dotenv

load_dotenv()

from reception_app.database import SessionLocal, engine  # noqa: E402
from reception_app.models import Base, Employee, EmployeeDepartment  # noqa: E402

logger = logging.getLogger(__name__)

SAMPLE_EMPLOYEES = [
    {"employee_id": "EMP001", "name": "Alice Johnson", "department": EmployeeDepartment.IT, "email": "alice.johnson@company.local", "phone": "+1-555-0101"},
    {"employee_id": "EMP002", "name": "Brian Smith", "department": EmployeeDepartment.HR, "email": "brian.smith@company.local", "phone": "+1-555-0102"},
    {"employee_id": "EMP003", "name": "Carla Mendes", "department": EmployeeDepartment.FINANCE, "email": "carla.mendes@company.local", "phone": "+1-555-0103"},
    {"employee_id": "EMP004", "name": "David Lee", "department": EmployeeDepartment.OPERATIONS, "email": "david.lee@company.local", "phone": "+1-555-0104"},
    {"employee_id": "EMP005", "name": "Emma Brown", "department": EmployeeDepartment.SALES, "email": "emma.brown@company.local", "phone": "+1-555-0105"},
]


def init_employees():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        created = 0
        for employee_data in SAMPLE_EMPLOYEES:
            exists = db.query(Employee).filter(Employee.employee_id == employee_data["employee_id"]).first()
            if exists:
                continue
            db.add(Employee(**employee_data, is_active=True))
            created += 1
        db.commit()
        logger.info(f"Seeded {created} employees ({len(SAMPLE_EMPLOYEES) - created} already present)")
    except Exception as e:
        logger.error(f"Seeding employees failed: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_employees()
