import pytest
from unittest.mock import MagicMock

from reception_app import rbac, models
from reception_app.models import UserRole


@pytest.fixture
def mock_user_builder():
    """Factory fixture to create mock user objects."""

    def _builder(user_id, role):
        user = MagicMock(spec=models.User)
        user.id = user_id
        user.role = role
        user.is_active = True
        return user

    return _builder


@pytest.mark.parametrize(
    "role, expected",
    [
        (UserRole.ADMIN, True),
        (UserRole.RECEPTION, True),
        (UserRole.SECURITY, False),
        (UserRole.EMPLOYEE, False),
    ],
)
def test_can_manage_front_desk(mock_user_builder, role, expected):
    assert rbac.can_manage_front_desk(mock_user_builder(1, role)) is expected


@pytest.mark.parametrize(
    "role, expected",
    [
        (UserRole.ADMIN, True),
        (UserRole.RECEPTION, False),
        (UserRole.SECURITY, True),
        (UserRole.EMPLOYEE, False),
    ],
)
def test_can_manage_gate(mock_user_builder, role, expected):
    assert rbac.can_manage_gate(mock_user_builder(1, role)) is expected


@pytest.mark.parametrize(
    "role, expected",
    [
        (UserRole.ADMIN, True),
        (UserRole.RECEPTION, True),
        (UserRole.SECURITY, True),
        (UserRole.EMPLOYEE, False),
    ],
)
def test_staff_roles_manage_visitors_and_export(mock_user_builder, role, expected):
    user = mock_user_builder(1, role)
    assert rbac.can_manage_visitors(user) is expected
    assert rbac.can_export(user) is expected


def test_user_without_role_has_no_access(mock_user_builder):
    user = mock_user_builder(1, None)
    assert not rbac.is_admin(user)
    assert not rbac.can_manage_visitors(user)


def test_can_view_user_self_or_admin(mock_user_builder):
    employee = mock_user_builder(5, UserRole.EMPLOYEE)
    admin = mock_user_builder(1, UserRole.ADMIN)

    assert rbac.can_view_user(employee, 5)
    assert not rbac.can_view_user(employee, 6)
    assert rbac.can_view_user(admin, 6)


def test_only_admin_views_audit_logs(mock_user_builder):
    assert rbac.can_view_audit_logs(mock_user_builder(1, UserRole.ADMIN))
    assert not rbac.can_view_audit_logs(mock_user_builder(2, UserRole.RECEPTION))
