"""Tests for account registration, login, token authentication and logout."""

from datetime import timedelta

import pytest
from sqlalchemy import select

from eventreg.core import security
from eventreg.core.exceptions import (
    DuplicateEmailError,
    InvalidCredentialsError,
    InvalidTokenError,
    MissingTokenError,
    RevokedTokenError,
    UnknownEmailError,
)
from eventreg.models.revoked_token import RevokedToken
from eventreg.models.user import UserRole
from eventreg.services import session
from eventreg.services.context import Identity


async def test_register_creates_user_role_account(db):
    user = await session.register(
        db, username="alice", email="alice@example.com", password="s3cret"
    )

    assert user.id is not None
    assert user.role == UserRole.USER
    assert user.hashed_password != "s3cret"
    assert security.verify_password("s3cret", user.hashed_password)


async def test_register_duplicate_email(db):
    await session.register(db, username="a", email="dup@example.com", password="x")

    with pytest.raises(DuplicateEmailError):
        await session.register(db, username="b", email="dup@example.com", password="y")


async def test_login_returns_token_and_role(db, make_account):
    organizer = await make_account(UserRole.ORGANIZER)

    token, role = await session.login(db, email=organizer.email, password="correct horse")

    assert role == UserRole.ORGANIZER
    identity = await session.authenticate(db, token)
    assert identity == Identity(email=organizer.email)


async def test_login_unknown_email(db):
    with pytest.raises(UnknownEmailError):
        await session.login(db, email="nobody@example.com", password="x")


async def test_login_wrong_password(db, make_account):
    user = await make_account()

    with pytest.raises(InvalidCredentialsError):
        await session.login(db, email=user.email, password="wrong")


async def test_two_logins_issue_distinct_tokens(db, make_account):
    user = await make_account()

    first, _ = await session.login(db, email=user.email, password="correct horse")
    second, _ = await session.login(db, email=user.email, password="correct horse")

    assert first != second


@pytest.mark.parametrize("token", [None, ""])
async def test_authenticate_missing_token(db, token):
    with pytest.raises(MissingTokenError):
        await session.authenticate(db, token)


async def test_authenticate_garbage_token(db):
    with pytest.raises(InvalidTokenError):
        await session.authenticate(db, "not-a-jwt")


async def test_authenticate_expired_token(db, make_account):
    user = await make_account()
    token = security.create_access_token(user.email, timedelta(seconds=-1))

    with pytest.raises(InvalidTokenError):
        await session.authenticate(db, token)


async def test_resolve_account_for_deleted_account(db):
    with pytest.raises(InvalidTokenError):
        await session.resolve_account(db, Identity(email="gone@example.com"))


async def test_logout_revokes_token(db, make_account):
    user = await make_account()
    token, _ = await session.login(db, email=user.email, password="correct horse")

    await session.logout(db, token)

    with pytest.raises(RevokedTokenError):
        await session.authenticate(db, token)


async def test_logout_is_idempotent(db, make_account):
    user = await make_account()
    token, _ = await session.login(db, email=user.email, password="correct horse")

    await session.logout(db, token)
    await session.logout(db, token)

    rows = (await db.execute(select(RevokedToken))).scalars().all()
    assert len(rows) == 1
    assert rows[0].expires_at is not None


async def test_logout_leaves_other_tokens_valid(db, make_account):
    user = await make_account()
    revoked, _ = await session.login(db, email=user.email, password="correct horse")
    kept, _ = await session.login(db, email=user.email, password="correct horse")

    await session.logout(db, revoked)

    identity = await session.authenticate(db, kept)
    assert identity.email == user.email
