"""Event-related endpoints for the RideClub API."""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from rideclub.api.v1.dependencies import CurrentUserDep, ParticipationServiceDep
from rideclub.models import Event
from rideclub.schemas.common import MessageResponse
from rideclub.schemas.event import EventCreate, EventPage, EventResponse, EventUpdate

router = APIRouter(prefix="/events", tags=["events"])


@router.get("/", response_model=EventPage)
async def list_events(
    service: ParticipationServiceDep,
    community_id: int | None = None,
    upcoming: bool = True,
    event_type: str | None = None,
    difficulty: str | None = None,
    page: int = 1,
    limit: int | None = None,
) -> EventPage:
    """List active public events, soonest first."""
    listing = service.list_public(
        community_id=community_id,
        upcoming=upcoming,
        event_type=event_type,
        difficulty=difficulty,
        page=page,
        limit=limit,
    )
    return EventPage(
        events=[EventResponse.model_validate(e) for e in listing.events],
        total=listing.total,
        total_pages=listing.total_pages,
        current_page=listing.page,
    )


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(event_id: int, service: ParticipationServiceDep) -> Event:
    """Get a specific event by ID."""
    return service.get(event_id)


@router.post("/", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    event_data: EventCreate,
    current_user: CurrentUserDep,
    service: ParticipationServiceDep,
) -> Event:
    """Create an event in a community the caller belongs to."""
    return service.create(current_user.id, event_data)


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: int,
    changes: EventUpdate,
    current_user: CurrentUserDep,
    service: ParticipationServiceDep,
) -> Event:
    """Update an event (organizer only)."""
    return service.update(current_user.id, event_id, changes)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_event(
    event_id: int,
    current_user: CurrentUserDep,
    service: ParticipationServiceDep,
) -> Response:
    """Delete an event (organizer only)."""
    service.delete(current_user.id, event_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{event_id}/register", response_model=MessageResponse)
async def register_for_event(
    event_id: int,
    current_user: CurrentUserDep,
    service: ParticipationServiceDep,
) -> MessageResponse:
    """Register the caller for an event."""
    return MessageResponse(message=service.register(current_user.id, event_id))


@router.post("/{event_id}/unregister", response_model=MessageResponse)
async def unregister_from_event(
    event_id: int,
    current_user: CurrentUserDep,
    service: ParticipationServiceDep,
) -> MessageResponse:
    """Withdraw the caller's registration for an event."""
    return MessageResponse(message=service.unregister(current_user.id, event_id))
