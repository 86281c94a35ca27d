from typing import Iterable

from eventreg.core.exceptions import PermissionDeniedError
from eventreg.models.user import User, UserRole


def authorize(account: User, required_roles: Iterable[UserRole]) -> None:
    """Raise unless the account's stored role is one of ``required_roles``.

    ``account`` must be the record loaded from the account store for this
    request; a role claimed by the client is never consulted.
    """
    roles = set(required_roles)
    if account.role not in roles:
        raise PermissionDeniedError(role.value for role in roles)


def ensure_owner_or_admin(account: User, owner_id: int) -> None:
    """Allow access to another account's data only for admins."""
    if account.id == owner_id:
        return
    authorize(account, {UserRole.ADMIN})
