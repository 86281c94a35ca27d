from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventreg.models.revoked_token import RevokedToken


async def is_revoked(db: AsyncSession, token: str) -> bool:
    result = await db.execute(
        select(RevokedToken.id).filter(RevokedToken.token == token)
    )
    return result.first() is not None


def build(token: str, expires_at: datetime) -> RevokedToken:
    return RevokedToken(token=token, expires_at=expires_at)
