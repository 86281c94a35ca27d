"""Account registration, login, token authentication and logout."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from jose.exceptions import JWTError
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from eventreg import crud
from eventreg.core import security
from eventreg.core.db_utils import db_transaction
from eventreg.core.exceptions import (
    DuplicateEmailError,
    InvalidCredentialsError,
    InvalidTokenError,
    MissingTokenError,
    RevokedTokenError,
    UnknownEmailError,
)
from eventreg.core.settings import settings
from eventreg.models.user import User, UserRole
from eventreg.schemas.user import TokenPayload

from .context import Identity

logger = logging.getLogger(__name__)


async def register(
    db: AsyncSession, *, username: str, email: str, password: str
) -> User:
    """Create a ``user``-role account; the email must not be taken."""
    if await crud.user.get_by_email(db, email=email):
        raise DuplicateEmailError()

    user = crud.user.build(username=username, email=email, password=password)
    try:
        async with db_transaction(db):
            db.add(user)
            await db.flush()
    except IntegrityError:
        # Lost a race against a concurrent registration of the same email
        raise DuplicateEmailError()

    await db.refresh(user)
    logger.info("Account registered", extra={"user_id": user.id})
    return user


async def login(db: AsyncSession, *, email: str, password: str) -> Tuple[str, UserRole]:
    user = await crud.user.get_by_email(db, email=email)
    if not user:
        raise UnknownEmailError()
    if not security.verify_password(password, user.hashed_password):
        raise InvalidCredentialsError()

    token = security.create_access_token(user.email)
    return token, user.role


async def authenticate(db: AsyncSession, token: Optional[str]) -> Identity:
    """Validate a bearer token and return the identity it names.

    The revocation list is consulted before the signature so that a
    logged-out token is reported as revoked even while it is still valid.
    """
    if not token:
        raise MissingTokenError()
    if await crud.revoked_token.is_revoked(db, token):
        raise RevokedTokenError()

    try:
        payload = TokenPayload(**security.decode_access_token(token))
    except (JWTError, ValidationError):
        raise InvalidTokenError()
    if not payload.sub:
        raise InvalidTokenError()

    return Identity(email=payload.sub)


async def resolve_account(db: AsyncSession, identity: Identity) -> User:
    """Load the account behind an authenticated identity."""
    user = await crud.user.get_by_email(db, email=identity.email)
    if not user:
        # Signed for an account that no longer exists
        raise InvalidTokenError()
    return user


async def logout(db: AsyncSession, token: str) -> None:
    """Put ``token`` on the revocation list; revoking twice is a no-op."""
    if await crud.revoked_token.is_revoked(db, token):
        return

    expires_at = security.token_expiry(token) or (
        datetime.now(timezone.utc)
        + timedelta(minutes=settings.security.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    try:
        async with db_transaction(db):
            db.add(crud.revoked_token.build(token, expires_at))
            await db.flush()
    except IntegrityError:
        # A concurrent logout already stored it
        logger.debug("Token already revoked")
