# reception_app/rbac.py
"""Role-based access control predicates"""

from . import models, constants


def _role_code(user: models.User):
    return str(user.role) if user.role else None


def has_role(user: models.User, *role_codes: str) -> bool:
    return _role_code(user) in role_codes


def is_admin(user: models.User) -> bool:
    return has_role(user, constants.ADMIN_ROLE_CODE)


def can_manage_front_desk(user: models.User) -> bool:
    """Appointments, parcels, phone calls, clients, travel corrections"""
    return has_role(user, *constants.FRONT_DESK_ROLES)


def can_manage_gate(user: models.User) -> bool:
    """Vehicle gate log and fleet mileage"""
    return has_role(user, *constants.SECURITY_DESK_ROLES)


def can_manage_visitors(user: models.User) -> bool:
    return has_role(user, *constants.STAFF_ROLES)


def can_export(user: models.User) -> bool:
    return has_role(user, *constants.STAFF_ROLES)


def can_view_user(user: models.User, target_user_id: int) -> bool:
    return is_admin(user) or user.id == target_user_id


def can_view_audit_logs(user: models.User) -> bool:
    return is_admin(user)
