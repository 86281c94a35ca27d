from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventreg.models.user import User, UserRole

from ..core.security import get_password_hash


async def get(db: AsyncSession, id: Any) -> Optional[User]:
    result = await db.execute(select(User).filter(User.id == id))
    first: Optional[User] = result.scalars().first()
    return first


async def get_by_email(db: AsyncSession, *, email: str) -> Optional[User]:
    result = await db.execute(select(User).filter(User.email == email))
    first: Optional[User] = result.scalars().first()
    return first


def build(
    *,
    username: str,
    email: str,
    password: str,
    role: UserRole = UserRole.USER,
) -> User:
    """New, unsaved account with the password hashed."""
    return User(
        username=username,
        email=email,
        hashed_password=get_password_hash(password),
        role=role,
    )
