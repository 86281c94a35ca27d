"""Event creation, attendee registration, rating and cancellation rules.

Every operation that writes runs inside a single ``db_transaction`` so a
failed rule check never leaves a half-applied change behind.
"""

import logging
from datetime import date, datetime, time, timezone
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from eventreg import crud
from eventreg.core.db_utils import as_utc, db_transaction
from eventreg.core.exceptions import (
    AlreadyRegisteredError,
    EventNotFoundError,
    HasAttendeesError,
    InvalidCapacityError,
    InvalidDateError,
    InvalidPriceError,
    InvalidRatingError,
    MissingFieldError,
    NotAttendeeError,
    SoldOutError,
    TooCloseToCancelError,
)
from eventreg.core.settings import settings
from eventreg.models.event import Event, EventAttendee
from eventreg.models.user import User, UserRole
from eventreg.schemas.event import RegistrationReceipt

from .authorization import authorize

logger = logging.getLogger(__name__)

EVENT_MANAGER_ROLES = {UserRole.ORGANIZER, UserRole.ADMIN}


def _normalize_date(value: Any) -> datetime:
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, str):
        try:
            return as_utc(datetime.fromisoformat(value))
        except ValueError:
            raise InvalidDateError(value)
    raise InvalidDateError(value)


async def get_event(db: AsyncSession, event_id: int) -> Event:
    event = await crud.event.get_event(db, event_id)
    if not event:
        raise EventNotFoundError(event_id)
    return event


async def create_event(
    db: AsyncSession,
    account: User,
    *,
    name: Optional[str],
    date: Any,
    capacity: Any,
    ticket_price: Any,
    dynamic_pricing: bool = False,
) -> Event:
    """Create an event owned by ``account`` (organizers and admins only)."""
    authorize(account, EVENT_MANAGER_ROLES)

    for field, value in (
        ("name", name),
        ("date", date),
        ("capacity", capacity),
        ("ticketPrice", ticket_price),
    ):
        if value is None or (isinstance(value, str) and not value.strip()):
            raise MissingFieldError(field)

    if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
        raise InvalidCapacityError()
    if isinstance(ticket_price, bool) or not isinstance(ticket_price, (int, float)):
        raise InvalidPriceError()
    if ticket_price < 0:
        raise InvalidPriceError()

    event = Event(
        name=str(name).strip(),
        date=_normalize_date(date),
        capacity=capacity,
        ticket_price=float(ticket_price),
        dynamic_pricing=bool(dynamic_pricing),
        attendees_count=0,
        ratings=[],
        created_by=account.id,
        attendee_links=[],
    )
    async with db_transaction(db):
        db.add(event)
        await db.flush()

    logger.info(
        "Event created",
        extra={"event_id": event.id, "created_by": account.id},
    )
    return event


async def register_attendee(
    db: AsyncSession, event_id: int, account_id: int
) -> RegistrationReceipt:
    """Register ``account_id`` for the event.

    Checks run in a fixed order: unknown event, already registered, sold
    out. The seat is taken with a conditional update, so under concurrency
    the capacity can never be exceeded; the loser of a race for the last
    seat gets ``SoldOutError``.
    """
    async with db_transaction(db):
        event = await crud.event.get_event(db, event_id, for_update=True)
        if not event:
            raise EventNotFoundError(event_id)
        if await crud.event.is_attendee(db, event_id, account_id):
            raise AlreadyRegisteredError()
        if event.attendees_count >= event.capacity:
            raise SoldOutError()

        if not await crud.event.claim_seat(
            db, event_id, settings.rules.DYNAMIC_PRICE_INCREMENT
        ):
            raise SoldOutError()

        db.add(EventAttendee(event_id=event_id, user_id=account_id))
        try:
            await db.flush()
        except IntegrityError:
            # Same account registering twice at the same moment
            raise AlreadyRegisteredError()

        await db.refresh(event)

    logger.info(
        "Attendee registered",
        extra={
            "event_id": event_id,
            "user_id": account_id,
            "attendees_count": event.attendees_count,
        },
    )
    return RegistrationReceipt(
        message="Registration successful",
        event_id=event.id,
        attendees_count=event.attendees_count,
        ticket_price=event.ticket_price,
    )


async def cancel_event(
    db: AsyncSession, event_id: int, now: Optional[datetime] = None
) -> None:
    """Delete an event that has no attendees and is not too close to its date.

    ``HasAttendeesError`` takes precedence over ``TooCloseToCancelError``.
    Past events fall inside the lockout window as well.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    lockout_days = settings.rules.CANCELLATION_LOCKOUT_DAYS

    async with db_transaction(db):
        event = await crud.event.get_event(db, event_id, for_update=True)
        if not event:
            raise EventNotFoundError(event_id)
        if event.attendees_count > 0:
            raise HasAttendeesError()

        days_until_event = (as_utc(event.date) - as_utc(now)).total_seconds() / 86400
        if days_until_event < lockout_days:
            raise TooCloseToCancelError(lockout_days)

        if not await crud.event.delete_if_empty(db, event_id):
            # Someone registered between the read and the delete
            raise HasAttendeesError()
        db.expunge(event)

    logger.info("Event cancelled", extra={"event_id": event_id})


async def rate_event(
    db: AsyncSession, event_id: int, account_id: int, rating: float
) -> Event:
    """Append a rating from an attendee of the event."""
    low, high = settings.rules.MIN_RATING, settings.rules.MAX_RATING
    if isinstance(rating, bool) or not low <= rating <= high:
        raise InvalidRatingError(low, high)

    async with db_transaction(db):
        event = await crud.event.get_event(db, event_id, for_update=True)
        if not event:
            raise EventNotFoundError(event_id)
        if not await crud.event.is_attendee(db, event_id, account_id):
            raise NotAttendeeError()
        # JSON columns only notice reassignment, not in-place mutation
        event.ratings = [*event.ratings, float(rating)]

    return event
