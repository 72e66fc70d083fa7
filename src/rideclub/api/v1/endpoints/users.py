"""User profile endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from rideclub.api.v1.dependencies import CurrentUserDep, SessionDep
from rideclub.core.security import create_access_token
from rideclub.models import Community, Event, User
from rideclub.schemas.community import CommunityResponse
from rideclub.schemas.event import EventResponse
from rideclub.schemas.user import ProfileUpdateRequest, SignupResponse, UserCreate, UserResponse
from rideclub.services import user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(payload: UserCreate, db: SessionDep) -> SignupResponse:
    """Create a rider profile and issue a bearer token for it."""
    user = user_service.create_user(db, payload)
    return SignupResponse(
        user=UserResponse.model_validate(user),
        access_token=create_access_token(user.id),
        token_type="bearer",
    )


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: CurrentUserDep) -> User:
    """Return the caller's profile."""
    return current_user


@router.patch("/me", response_model=UserResponse)
async def update_me(
    payload: ProfileUpdateRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> User:
    """Update the caller's profile; relationship fields cannot be edited here."""
    return user_service.update_user(db, current_user, payload)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, db: SessionDep) -> User:
    """Return a rider's public profile."""
    return user_service.require_user(db, user_id)


@router.get("/{user_id}/communities", response_model=list[CommunityResponse])
async def get_user_communities(user_id: int, db: SessionDep) -> list[Community]:
    """Return the communities listed in the user's joined communities."""
    user = user_service.require_user(db, user_id)
    by_id = {c.id: c for c in db.query(Community).filter(Community.id.in_(user.joined_communities or []))}
    return [by_id[cid] for cid in user.joined_communities or [] if cid in by_id]


@router.get("/{user_id}/events", response_model=list[EventResponse])
async def get_user_events(user_id: int, db: SessionDep) -> list[Event]:
    """Return the events listed in the user's registered events."""
    user = user_service.require_user(db, user_id)
    by_id = {e.id: e for e in db.query(Event).filter(Event.id.in_(user.registered_events or []))}
    return [by_id[eid] for eid in user.registered_events or [] if eid in by_id]
