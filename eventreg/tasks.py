import asyncio
import logging
from typing import Any, Coroutine, TypeVar

from .celery_app import MAINTENANCE_QUEUE, celery_app
from .core.cleanup import purge_expired_revocations
from .core.database_manager import db_manager

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Helper to run async functions in sync context."""
    try:
        loop = asyncio.get_event_loop()
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)


async def _purge_revoked_tokens() -> int:
    async with db_manager.get_session() as db:
        return await purge_expired_revocations(db)


@celery_app.task(queue=MAINTENANCE_QUEUE)  # type: ignore[misc]
def purge_revoked_tokens() -> int:
    """Periodic task removing revocation entries for expired tokens"""
    deleted_count = run_async(_purge_revoked_tokens())
    logger.info("Purged expired revoked tokens", extra={"deleted": deleted_count})
    return deleted_count
