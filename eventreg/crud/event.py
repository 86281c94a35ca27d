from typing import List, Optional

from sqlalchemy import case, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from eventreg.models.event import Event, EventAttendee


async def get_event(
    db: AsyncSession, event_id: int, *, for_update: bool = False
) -> Optional[Event]:
    query = select(Event).filter(Event.id == event_id)
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(query)
    first: Optional[Event] = result.scalars().first()
    return first


async def get_events(db: AsyncSession) -> List[Event]:
    result = await db.execute(select(Event).order_by(Event.id))
    return list(result.scalars().all())


async def get_events_created_by(db: AsyncSession, user_id: int) -> List[Event]:
    result = await db.execute(
        select(Event).filter(Event.created_by == user_id).order_by(Event.id)
    )
    return list(result.scalars().all())


async def get_events_registered_by(db: AsyncSession, user_id: int) -> List[Event]:
    result = await db.execute(
        select(Event)
        .join(EventAttendee, EventAttendee.event_id == Event.id)
        .filter(EventAttendee.user_id == user_id)
        .order_by(Event.date.asc(), Event.id.asc())
    )
    return list(result.scalars().all())


async def is_attendee(db: AsyncSession, event_id: int, user_id: int) -> bool:
    result = await db.execute(
        select(EventAttendee.id).filter(
            EventAttendee.event_id == event_id, EventAttendee.user_id == user_id
        )
    )
    return result.first() is not None


async def claim_seat(db: AsyncSession, event_id: int, price_increment: float) -> bool:
    """Take one seat if any is left, bumping the price for dynamic pricing.

    A single conditional UPDATE, so two writers can never both take the
    last seat. Returns False when the event was already full.
    """
    result = await db.execute(
        update(Event)
        .where(Event.id == event_id, Event.attendees_count < Event.capacity)
        .values(
            attendees_count=Event.attendees_count + 1,
            ticket_price=case(
                (Event.dynamic_pricing.is_(True), Event.ticket_price + price_increment),
                else_=Event.ticket_price,
            ),
        )
        .execution_options(synchronize_session=False)
    )
    return bool(result.rowcount == 1)


async def delete_if_empty(db: AsyncSession, event_id: int) -> bool:
    """Delete the event only while it has no attendees."""
    result = await db.execute(
        delete(Event)
        .where(Event.id == event_id, Event.attendees_count == 0)
        .execution_options(synchronize_session=False)
    )
    return bool(result.rowcount == 1)
