from typing import Any, AsyncGenerator, Iterable, Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from eventreg.core.database_manager import db_manager
from eventreg.core.exceptions import MissingTokenError
from eventreg.core.settings import settings
from eventreg.models.user import UserRole
from eventreg.services import authorization, session
from eventreg.services.context import RequestContext

# auto_error is off so a missing header surfaces as MissingTokenError (401)
reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_PREFIX}/login", auto_error=False
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with db_manager.get_session() as db:
        yield db


def get_token(token: Optional[str] = Depends(reusable_oauth2)) -> str:
    if not token:
        raise MissingTokenError()
    return token


async def get_request_context(
    request: Request,
    db: AsyncSession = Depends(get_db),
    token: str = Depends(get_token),
) -> RequestContext:
    """Authenticate the bearer token and load the caller's account."""
    identity = await session.authenticate(db, token)
    account = await session.resolve_account(db, identity)
    return RequestContext(
        account=account,
        token=token,
        request_id=getattr(request.state, "request_id", None),
    )


def require_roles(required_roles: Iterable[UserRole]) -> Any:
    """Dependency factory for role-based access control"""
    roles = set(required_roles)

    def roles_dependency(
        ctx: RequestContext = Depends(get_request_context),
    ) -> RequestContext:
        authorization.authorize(ctx.account, roles)
        return ctx

    return roles_dependency
