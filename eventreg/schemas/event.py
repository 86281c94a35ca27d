from datetime import date as date_type
from datetime import datetime
from typing import Any, List, Optional, Union

from pydantic import field_serializer

from eventreg.core.db_utils import as_utc

from .base import APIModel


class EventCreate(APIModel):
    # Presence, type and range checks live in the registration service so
    # that they surface as MissingField / InvalidCapacity / InvalidPrice.
    name: Optional[str] = None
    date: Optional[Union[datetime, date_type]] = None
    capacity: Optional[Any] = None
    ticket_price: Optional[Any] = None
    dynamic_pricing: bool = False


class Event(APIModel):
    id: int
    name: str
    date: datetime
    capacity: int
    ticket_price: float
    dynamic_pricing: bool
    attendees: List[int]
    ratings: List[float]
    created_by: int

    @field_serializer("date")
    def serialize_date(self, value: datetime) -> datetime:
        return as_utc(value)


class EventSummary(APIModel):
    name: str
    attendees_count: int


class EventAggregate(APIModel):
    name: str
    attendees_count: int
    avg_rating: float


class CapacityFill(APIModel):
    percentage_filled: float


class RegistrationReceipt(APIModel):
    message: str
    event_id: int
    attendees_count: int
    ticket_price: float


class RatingCreate(APIModel):
    rating: float
