from datetime import timedelta

import pytest
from jose import JWTError

from reception_app import auth, crud, models, schemas
from reception_app.config import settings
from reception_app.error_handlers import AccountLockedException, DuplicateResourceException
from reception_app.models import utcnow

DEFAULT_PASSWORD = "password123"


def test_password_hash_roundtrip():
    hashed = auth.get_password_hash("s3cret-password")
    assert hashed != "s3cret-password"
    assert auth.verify_password("s3cret-password", hashed)
    assert not auth.verify_password("wrong-password", hashed)


def test_password_longer_than_72_bytes_is_truncated():
    long_password = "a" * 80
    hashed = auth.get_password_hash(long_password)
    assert auth.verify_password("a" * 72 + "different", hashed)


def test_access_token_carries_subject_and_type():
    token = auth.create_access_token({"sub": "42"})
    payload = auth.decode_token(token)
    assert payload["sub"] == "42"
    assert payload["type"] == "access"


def test_expired_token_rejected():
    token = auth.create_access_token({"sub": "42"}, expires_delta=timedelta(seconds=-1))
    with pytest.raises(JWTError):
        auth.decode_token(token)


def test_create_user_normalises_email_and_rejects_duplicates(db):
    user = crud.create_user(db, schemas.UserCreate(
        email="  Front.Desk@Reception.TEST ", name="Front Desk", role=models.UserRole.RECEPTION, password="password123",
    ))
    assert user.email == "front.desk@reception.test"
    assert auth.verify_password("password123", user.hashed_password)

    with pytest.raises(DuplicateResourceException):
        crud.create_user(db, schemas.UserCreate(email="front.desk@reception.test", name="Copy", password="password123"))


def test_authenticate_user_success_resets_failures(db, make_user):
    user = make_user(email="desk@reception.test")
    user.failed_login_attempts = 3
    db.commit()

    assert crud.authenticate_user(db, "desk@reception.test", DEFAULT_PASSWORD) is user
    assert user.failed_login_attempts == 0


def test_authenticate_unknown_email_returns_none(db):
    assert crud.authenticate_user(db, "nobody@reception.test", DEFAULT_PASSWORD) is None


def test_account_locks_after_max_failed_attempts(db, make_user):
    user = make_user(email="desk@reception.test")

    for _ in range(settings.max_login_attempts - 1):
        assert crud.authenticate_user(db, user.email, "wrong-password") is None
    assert user.failed_login_attempts == settings.max_login_attempts - 1
    assert user.locked_until is None

    assert crud.authenticate_user(db, user.email, "wrong-password") is None
    assert user.locked_until is not None
    assert user.is_locked
    assert user.failed_login_attempts == 0

    with pytest.raises(AccountLockedException):
        crud.authenticate_user(db, user.email, DEFAULT_PASSWORD)

    lock_entry = db.query(models.AuditLog).filter(models.AuditLog.action == "LOGIN_LOCKED").one()
    assert lock_entry.entity_id == user.id


def test_expired_lock_allows_login(db, make_user):
    user = make_user(email="desk@reception.test")
    user.locked_until = utcnow() - timedelta(minutes=1)
    db.commit()

    assert crud.authenticate_user(db, user.email, DEFAULT_PASSWORD) is user
    assert user.locked_until is None
