"""Event-related Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

EventType = Literal["Ride", "Meetup", "Tour", "Racing", "Charity", "Other"]
Difficulty = Literal["Easy", "Medium", "Hard", "Expert"]


class EventCreate(BaseModel):
    """Schema for creating a new event inside a community."""

    title: str = Field(..., min_length=5, max_length=100)
    description: str = Field(..., min_length=20, max_length=1000)
    community_id: int
    event_date: datetime
    start_time: str = Field(..., min_length=1, max_length=16)
    end_time: str = Field(..., min_length=1, max_length=16)
    location_name: str = Field(..., min_length=1)
    location_address: str = Field(..., min_length=1)
    max_participants: int | None = Field(None, ge=1)
    event_type: EventType = "Ride"
    difficulty: Difficulty = "Easy"
    distance_km: float | None = Field(None, ge=0)
    requirements: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    is_public: bool = True


class EventUpdate(BaseModel):
    """Schema for organizer edits to an event."""

    title: str | None = Field(None, min_length=5, max_length=100)
    description: str | None = Field(None, min_length=20, max_length=1000)
    event_date: datetime | None = None
    start_time: str | None = Field(None, min_length=1, max_length=16)
    end_time: str | None = Field(None, min_length=1, max_length=16)
    location_name: str | None = None
    location_address: str | None = None
    max_participants: int | None = Field(None, ge=1)
    event_type: EventType | None = None
    difficulty: Difficulty | None = None
    distance_km: float | None = Field(None, ge=0)
    requirements: list[str] | None = None
    tags: list[str] | None = None
    is_active: bool | None = None


class ParticipantEntry(BaseModel):
    """One entry of an event's participant list."""

    user: int
    registered_at: datetime
    status: Literal["registered", "cancelled"]


class EventResponse(BaseModel):
    """Schema for event information returned by the API."""

    id: int
    title: str
    description: str
    organizer_id: int
    community_id: int
    event_date: datetime
    start_time: str
    end_time: str
    location_name: str
    location_address: str
    event_type: str
    difficulty: str
    distance_km: float | None
    requirements: list[str]
    tags: list[str]
    is_public: bool
    is_active: bool
    max_participants: int
    current_participants: int
    participants: list[ParticipantEntry]

    model_config = ConfigDict(from_attributes=True)


class EventPage(BaseModel):
    """Paginated event listing."""

    events: list[EventResponse]
    total: int
    total_pages: int
    current_page: int
