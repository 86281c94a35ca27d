from typing import Any, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventreg.api import deps
from eventreg.schemas.event import CapacityFill
from eventreg.schemas.event import Event as EventSchema
from eventreg.schemas.event import (
    EventAggregate,
    EventCreate,
    EventSummary,
    RatingCreate,
    RegistrationReceipt,
)
from eventreg.schemas.user import Message
from eventreg.services import registration, reporting
from eventreg.services.context import RequestContext

router = APIRouter()


@router.get("", response_model=List[EventSummary], summary="List Events")  # type: ignore[misc]
async def list_events(
    db: AsyncSession = Depends(deps.get_db),
    ctx: RequestContext = Depends(deps.get_request_context),
) -> Any:
    """
    **List Events with Attendee Counts**

    Admins and organizers see every event; other accounts see only the
    events they created.

    **Response:**
    `[{"name": "...", "attendeesCount": 3}, ...]`
    """
    return await reporting.list_events(db, ctx.account)


@router.get(
    "/created/{user_id}", response_model=List[EventSchema], summary="Events Created by User"
)  # type: ignore[misc]
async def events_created_by(
    user_id: int,
    db: AsyncSession = Depends(deps.get_db),
    ctx: RequestContext = Depends(deps.get_request_context),
) -> Any:
    """
    **Events Created by an Account**

    Only the account itself or an admin may list them.

    **Errors:**
    - `401`: Caller is neither the account nor an admin
    """
    return await reporting.events_created_by(db, ctx.account, user_id)


@router.get(
    "/registered/{user_id}",
    response_model=List[EventSchema],
    summary="Events a User Registered For",
)  # type: ignore[misc]
async def events_registered_by(
    user_id: int,
    db: AsyncSession = Depends(deps.get_db),
    ctx: RequestContext = Depends(deps.get_request_context),
) -> Any:
    """Events the account is registered for, sorted by date ascending."""
    return await reporting.events_registered_by(db, user_id)


@router.get(
    "/capacity/{event_id}", response_model=CapacityFill, summary="Capacity Fill"
)  # type: ignore[misc]
async def capacity_fill(
    event_id: int,
    db: AsyncSession = Depends(deps.get_db),
    ctx: RequestContext = Depends(deps.get_request_context),
) -> Any:
    """
    **Percentage of Seats Taken**

    **Response:**
    `{"percentageFilled": 50.0}`

    **Errors:**
    - `404`: Event not found
    """
    percentage = await reporting.capacity_fill(db, event_id)
    return CapacityFill(percentage_filled=percentage)


@router.get(
    "/aggregate", response_model=List[EventAggregate], summary="Aggregate Statistics"
)  # type: ignore[misc]
async def aggregate(
    db: AsyncSession = Depends(deps.get_db),
    ctx: RequestContext = Depends(deps.get_request_context),
) -> Any:
    """
    **Attendee Counts and Average Ratings**

    `avgRating` is 0 for events without ratings.
    """
    return await reporting.aggregate(db)


@router.post(
    "/register/{event_id}",
    response_model=RegistrationReceipt,
    summary="Register for Event",
)  # type: ignore[misc]
async def register_for_event(
    event_id: int,
    db: AsyncSession = Depends(deps.get_db),
    ctx: RequestContext = Depends(deps.get_request_context),
) -> Any:
    """
    **Register the Caller for an Event**

    The authenticated account is added to the attendee list. With dynamic
    pricing enabled, the ticket price rises by 40 on every registration.

    **Errors:**
    - `400`: Already registered, or the event is sold out
    - `404`: Event not found
    """
    return await registration.register_attendee(db, event_id, ctx.account_id)


@router.post(
    "/create",
    response_model=EventSchema,
    status_code=status.HTTP_201_CREATED,
    summary="Create New Event",
)  # type: ignore[misc]
async def create_event(
    event_in: EventCreate,
    db: AsyncSession = Depends(deps.get_db),
    ctx: RequestContext = Depends(
        deps.require_roles(registration.EVENT_MANAGER_ROLES)
    ),
) -> Any:
    """
    **Create New Event** (Organizer/Admin Only)

    **Request Body:**
    - `name` (string): Event title
    - `date` (date or datetime): When the event takes place
    - `capacity` (integer): Maximum number of attendees, positive
    - `ticketPrice` (number): Ticket price, 0 or more
    - `dynamicPricing` (boolean, optional): Raise the price on each registration

    **Example Request:**
    ```json
    {
        "name": "Tech Conference",
        "date": "2026-06-15T09:00:00Z",
        "capacity": 500,
        "ticketPrice": 299.99,
        "dynamicPricing": true
    }
    ```

    **Errors:**
    - `400`: Missing field, invalid capacity or negative price
    - `401`: Authentication required, or role is not organizer/admin
    """
    return await registration.create_event(
        db,
        ctx.account,
        name=event_in.name,
        date=event_in.date,
        capacity=event_in.capacity,
        ticket_price=event_in.ticket_price,
        dynamic_pricing=event_in.dynamic_pricing,
    )


@router.post(
    "/{event_id}/ratings", response_model=EventSchema, summary="Rate Event"
)  # type: ignore[misc]
async def rate_event(
    event_id: int,
    rating_in: RatingCreate,
    db: AsyncSession = Depends(deps.get_db),
    ctx: RequestContext = Depends(deps.get_request_context),
) -> Any:
    """
    **Rate an Event You Attend**

    **Errors:**
    - `400`: Not an attendee, or rating outside 1..5
    - `404`: Event not found
    """
    return await registration.rate_event(
        db, event_id, ctx.account_id, rating_in.rating
    )


@router.get("/{event_id}", response_model=EventSchema, summary="Get Event Details")  # type: ignore[misc]
async def read_event(
    event_id: int,
    db: AsyncSession = Depends(deps.get_db),
    ctx: RequestContext = Depends(deps.get_request_context),
) -> Any:
    """
    **Get Event by ID**

    **Errors:**
    - `404`: Event not found
    """
    return await registration.get_event(db, event_id)


@router.delete("/{event_id}", response_model=Message, summary="Cancel Event")  # type: ignore[misc]
async def cancel_event(
    event_id: int,
    db: AsyncSession = Depends(deps.get_db),
    ctx: RequestContext = Depends(deps.get_request_context),
) -> Any:
    """
    **Cancel (Delete) an Event**

    Only events without attendees that are at least 7 days away can be
    cancelled. When both rules fail, the attendee rule is reported.

    **Errors:**
    - `400`: Event has attendees, or is within the 7-day lockout window
    - `404`: Event not found
    """
    await registration.cancel_event(db, event_id)
    return Message(message="Event cancelled successfully")
