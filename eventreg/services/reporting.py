"""Read-only summaries derived from the event store."""

from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from eventreg import crud
from eventreg.core.exceptions import EventNotFoundError
from eventreg.models.event import Event
from eventreg.models.user import User, UserRole
from eventreg.schemas.event import EventAggregate, EventSummary

from .authorization import ensure_owner_or_admin

FULL_LISTING_ROLES = {UserRole.ADMIN, UserRole.ORGANIZER}


async def list_events(db: AsyncSession, account: User) -> List[EventSummary]:
    """All events for admins and organizers, otherwise only the caller's own."""
    if account.role in FULL_LISTING_ROLES:
        events = await crud.event.get_events(db)
    else:
        events = await crud.event.get_events_created_by(db, account.id)
    return [
        EventSummary(name=event.name, attendees_count=event.attendees_count)
        for event in events
    ]


async def events_created_by(
    db: AsyncSession, account: User, user_id: int
) -> List[Event]:
    ensure_owner_or_admin(account, user_id)
    return await crud.event.get_events_created_by(db, user_id)


async def events_registered_by(db: AsyncSession, user_id: int) -> List[Event]:
    """Events ``user_id`` attends, earliest first."""
    return await crud.event.get_events_registered_by(db, user_id)


async def capacity_fill(db: AsyncSession, event_id: int) -> float:
    event = await crud.event.get_event(db, event_id)
    if not event:
        raise EventNotFoundError(event_id)
    if event.capacity <= 0:
        # Rejected at creation and by a table constraint
        raise ValueError(f"Event {event_id} has non-positive capacity")
    return 100 * event.attendees_count / event.capacity


def average_rating(ratings: List[float]) -> float:
    if not ratings:
        return 0
    return sum(ratings) / len(ratings)


async def aggregate(db: AsyncSession) -> List[EventAggregate]:
    events = await crud.event.get_events(db)
    return [
        EventAggregate(
            name=event.name,
            attendees_count=event.attendees_count,
            avg_rating=average_rating(event.ratings),
        )
        for event in events
    ]
