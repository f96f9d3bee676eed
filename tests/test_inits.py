from reception_app import auth, models
from reception_app.inits.init_employees import SAMPLE_EMPLOYEES, init_employees
from reception_app.inits.init_users import DEFAULT_USERS, init_users


def test_init_employees_is_idempotent(db):
    init_employees()
    init_employees()
    assert db.query(models.Employee).count() == len(SAMPLE_EMPLOYEES)


def test_init_users_uses_seed_password_from_environment(db, monkeypatch):
    monkeypatch.setenv("SEED_ADMIN_PASSWORD", "admin-seed-password")
    init_users()
    init_users()

    assert db.query(models.User).count() == len(DEFAULT_USERS)
    admin = db.query(models.User).filter(models.User.email == "admin@reception.local").one()
    assert admin.role == models.UserRole.ADMIN
    assert auth.verify_password("admin-seed-password", admin.hashed_password)
