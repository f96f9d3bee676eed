import logging
from typing import Optional

from fastapi import Request
from sqladmin.authentication import AuthenticationBackend

from .. import crud, models, rbac
from ..database import SessionLocal
from ..error_handlers import AccountLockedException

logger = logging.getLogger(__name__)

SESSION_KEY = "admin_user_id"


def _is_admin_account(user: Optional[models.User]) -> bool:
    return user is not None and user.is_active and rbac.is_admin(user)


class AdminAuthBackend(AuthenticationBackend):
    """Cookie-session login for /admin; only active admins get in.

    Credentials go through the same lockout accounting as the API login.
    """

    async def login(self, request: Request) -> bool:
        form = await request.form()
        email, password = form.get("username"), form.get("password")
        if not (email and password):
            return False

        with SessionLocal() as db:
            try:
                user = crud.authenticate_user(db, email=email, password=password)
            except AccountLockedException:
                logger.warning("Admin login for locked account %s", email)
                return False
            if not _is_admin_account(user):
                logger.info("Admin login refused for %s", email)
                return False
            request.session[SESSION_KEY] = user.id
        return True

    async def logout(self, request: Request) -> bool:
        request.session.pop(SESSION_KEY, None)
        return True

    async def authenticate(self, request: Request) -> Optional[bool]:
        user_id = request.session.get(SESSION_KEY)
        if user_id is None:
            return False
        with SessionLocal() as db:
            return _is_admin_account(crud.get_user(db, user_id=user_id))
