"""Cleanup utilities."""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from eventreg.models.revoked_token import RevokedToken


async def purge_expired_revocations(
    db: AsyncSession, now: Optional[datetime] = None
) -> int:
    """Delete revocation entries for tokens that have already expired.

    An expired token fails signature/expiry verification on its own, so its
    revocation entry no longer protects anything.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    result = await db.execute(
        delete(RevokedToken).where(RevokedToken.expires_at < now)
    )

    await db.commit()
    return result.rowcount
