from datetime import datetime
from typing import TYPE_CHECKING, List

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from ..core.database_manager import Base

if TYPE_CHECKING:
    from .user import User


class Event(Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(200), index=True, nullable=False)
    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    ticket_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    dynamic_pricing: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Always equal to len(attendee_links); kept as a column so that the
    # capacity check and the append happen in one conditional UPDATE.
    attendees_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    ratings: Mapped[List[float]] = mapped_column(JSON, nullable=False, default=list)
    created_by: Mapped[int] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    creator: Mapped["User"] = relationship("User", back_populates="created_events")
    attendee_links: Mapped[List["EventAttendee"]] = relationship(
        "EventAttendee",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="EventAttendee.id",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("capacity > 0", name="ck_event_capacity_positive"),
        CheckConstraint("ticket_price >= 0", name="ck_event_price_non_negative"),
        CheckConstraint(
            "attendees_count <= capacity", name="ck_event_attendees_within_capacity"
        ),
        Index("idx_event_creator_date", "created_by", "date"),
    )

    @property
    def attendees(self) -> List[int]:
        """Attendee account ids in registration order."""
        return [link.user_id for link in self.attendee_links]


class EventAttendee(Base):
    __tablename__ = "event_attendees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    event_id: Mapped[int] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )
    registered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    event: Mapped["Event"] = relationship("Event", back_populates="attendee_links")

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_attendee"),
    )
