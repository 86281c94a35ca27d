import pytest

from eventreg.core.exceptions import ErrorCode, PermissionDeniedError
from eventreg.models.user import User, UserRole
from eventreg.services.authorization import authorize, ensure_owner_or_admin


def account(role: UserRole, id: int = 1) -> User:
    return User(id=id, username="u", email="u@example.com", hashed_password="x", role=role)


@pytest.mark.parametrize("role", [UserRole.ORGANIZER, UserRole.ADMIN])
def test_authorize_allows_listed_roles(role):
    authorize(account(role), {UserRole.ORGANIZER, UserRole.ADMIN})


def test_authorize_rejects_other_roles():
    with pytest.raises(PermissionDeniedError) as exc_info:
        authorize(account(UserRole.USER), [UserRole.ORGANIZER, UserRole.ADMIN])

    assert exc_info.value.code == ErrorCode.FORBIDDEN
    assert exc_info.value.status_code == 401
    assert "admin, organizer" in exc_info.value.message


def test_owner_may_access_own_data():
    ensure_owner_or_admin(account(UserRole.USER, id=7), 7)


def test_admin_may_access_other_data():
    ensure_owner_or_admin(account(UserRole.ADMIN, id=1), 7)


def test_non_owner_rejected():
    with pytest.raises(PermissionDeniedError):
        ensure_owner_or_admin(account(UserRole.ORGANIZER, id=1), 7)
