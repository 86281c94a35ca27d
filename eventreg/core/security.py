import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, cast

from jose import jwt
from jose.exceptions import JWTError
from passlib.context import CryptContext

from .settings import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.security.BCRYPT_ROUNDS,
)

ALGORITHM = settings.security.JWT_ALGORITHM


def create_access_token(
    subject: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Sign a token for ``subject`` (the account email).

    Every token carries a random ``jti`` so two logins in the same second
    never produce the same string, which matters for the revocation list.
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta
        if expires_delta
        else timedelta(minutes=settings.security.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode: dict[str, Any] = {
        "exp": expire,
        "sub": str(subject),
        "jti": uuid.uuid4().hex,
    }
    encoded_jwt = jwt.encode(
        to_encode, settings.security.SECRET_KEY, algorithm=ALGORITHM
    )
    return cast(str, encoded_jwt)


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify signature and expiry; raises ``JWTError`` on failure."""
    return cast(
        dict[str, Any],
        jwt.decode(token, settings.security.SECRET_KEY, algorithms=[ALGORITHM]),
    )


def token_expiry(token: str) -> Optional[datetime]:
    """Read the ``exp`` claim without verifying the token."""
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return None
    exp = claims.get("exp")
    if not isinstance(exp, (int, float)):
        return None
    return datetime.fromtimestamp(exp, tz=timezone.utc)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return cast(bool, pwd_context.verify(plain_password, hashed_password))


def get_password_hash(password: str) -> str:
    return cast(str, pwd_context.hash(password))
