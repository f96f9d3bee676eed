"""
Bearer-token resolution and the role gates routers hang off ``Depends``.
"""
from typing import Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session

from . import crud, models, rbac
from .auth import decode_token
from .dependencies import get_db

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _forbidden(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> models.User:
    """Resolve the ``sub`` claim of an access token to a stored user"""
    try:
        subject = decode_token(token).get("sub")
        user_id = int(subject) if subject is not None else None
    except (JWTError, ValueError):
        raise _unauthorized()

    user = crud.get_user(db, user_id=user_id) if user_id is not None else None
    if user is None:
        raise _unauthorized()
    return user


def get_current_active_user(current_user: models.User = Depends(get_current_user)) -> models.User:
    if not current_user.is_active:
        raise _forbidden("Inactive user")
    return current_user


def require_role(allowed: Callable[[models.User], bool], detail: str):
    """Build a dependency admitting active users for whom ``allowed(user)`` holds"""

    def gate(current_user: models.User = Depends(get_current_active_user)) -> models.User:
        if not allowed(current_user):
            raise _forbidden(detail)
        return current_user

    gate.__name__ = f"require_{allowed.__name__}"
    return gate


get_admin_user = require_role(rbac.is_admin, "Admin privileges required")
# reception or admin
get_front_desk_user = require_role(rbac.can_manage_front_desk, "Reception privileges required")
# security or admin
get_security_user = require_role(rbac.can_manage_gate, "Security privileges required")
get_staff_user = require_role(rbac.can_manage_visitors, "Front office privileges required")
get_export_user = require_role(rbac.can_export, "Export privileges required")
get_audit_user = require_role(rbac.can_view_audit_logs, "Admin privileges required")
