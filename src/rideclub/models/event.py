"""SQLAlchemy model for community events and their participant list."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Integer, String, Text, event
from sqlalchemy.orm import Mapped, mapped_column

from rideclub.db.session import Base
from rideclub.db.time import utcnow

PARTICIPANT_REGISTERED = "registered"
PARTICIPANT_CANCELLED = "cancelled"

EVENT_TYPES = ("Ride", "Meetup", "Tour", "Racing", "Charity", "Other")
EVENT_DIFFICULTIES = ("Easy", "Medium", "Hard", "Expert")


class Event(Base):
    """A ride, meetup or tour organised inside a community.

    ``participants`` holds ``{"user", "registered_at", "status"}`` entries and is
    the group side of the participation relationship.
    """

    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(1000), nullable=False)
    organizer_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    community_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("communities.id"), nullable=False, index=True
    )
    event_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    start_time: Mapped[str] = mapped_column(String(16), nullable=False)
    end_time: Mapped[str] = mapped_column(String(16), nullable=False)
    location_name: Mapped[str] = mapped_column(Text, nullable=False)
    location_address: Mapped[str] = mapped_column(Text, nullable=False)
    event_type: Mapped[str] = mapped_column(String(16), nullable=False, default="Ride")
    difficulty: Mapped[str] = mapped_column(String(16), nullable=False, default="Easy")
    distance_km: Mapped[float | None] = mapped_column(Float, nullable=True)
    requirements: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    max_participants: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    participants: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    # Derived; always the number of "registered" participants.
    current_participants: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def registered_ids(self) -> list[int]:
        """Return ids of users holding a live registration, in list order."""
        return [
            int(entry["user"])
            for entry in self.participants or []
            if entry.get("status") == PARTICIPANT_REGISTERED
        ]

    def is_registered(self, user_id: int) -> bool:
        """Return True when ``user_id`` holds a live registration."""
        return user_id in self.registered_ids()


@event.listens_for(Event, "before_insert")
@event.listens_for(Event, "before_update")
def _sync_participant_count(_mapper: Any, _connection: Any, target: Event) -> None:
    target.current_participants = len(target.registered_ids())
