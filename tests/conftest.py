import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-reception-aid-suite-0123456789")
os.environ.setdefault("ENV", "test")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from reception_app import models  # noqa: E402
from reception_app.auth import create_access_token, get_password_hash  # noqa: E402
from reception_app.database import Base, SessionLocal, engine  # noqa: E402
from reception_app.dependencies import get_db  # noqa: E402

DEFAULT_PASSWORD = "password123"


@pytest.fixture
def db():
    """Fresh schema on the shared in-memory SQLite connection for every test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    import main

    main.app.dependency_overrides[get_db] = lambda: db
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    """Factory fixture persisting users with a known password."""
    counter = {"n": 0}

    def _builder(role=models.UserRole.RECEPTION, email=None, is_active=True, password=DEFAULT_PASSWORD):
        counter["n"] += 1
        user = models.User(
            email=email or f"{role.value}{counter['n']}@reception.test",
            name=f"{role.value.title()} {counter['n']}",
            role=role,
            hashed_password=get_password_hash(password),
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _builder


@pytest.fixture
def auth_headers():
    def _headers(user):
        token = create_access_token(data={"sub": str(user.id)})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def make_employee(db):
    counter = {"n": 0}

    def _builder(name=None, department=models.EmployeeDepartment.IT, is_active=True):
        counter["n"] += 1
        employee = models.Employee(
            name=name or f"Employee {counter['n']}",
            employee_id=f"EMP{counter['n']:03d}",
            department=department,
            email=f"employee{counter['n']}@company.test",
            is_active=is_active,
        )
        db.add(employee)
        db.commit()
        db.refresh(employee)
        return employee

    return _builder
