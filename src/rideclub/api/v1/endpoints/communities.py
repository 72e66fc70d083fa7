# src/rideclub/api/v1/endpoints/communities.py
"""Community-related endpoints for the RideClub API."""

from __future__ import annotations

from fastapi import APIRouter, status

from rideclub.api.v1.dependencies import CurrentUserDep, MembershipServiceDep
from rideclub.models import Community, User
from rideclub.schemas.common import MessageResponse
from rideclub.schemas.community import (
    CommunityCreate,
    CommunityPage,
    CommunityResponse,
    CommunityUpdate,
)
from rideclub.schemas.user import UserSummary

router = APIRouter(prefix="/communities", tags=["communities"])


@router.get("/", response_model=CommunityPage)
async def list_communities(
    service: MembershipServiceDep,
    city: str | None = None,
    bike_type: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int | None = None,
) -> CommunityPage:
    """List public communities with optional filters."""
    listing = service.list_public(
        city=city, bike_type=bike_type, search=search, page=page, limit=limit
    )
    return CommunityPage(
        communities=[CommunityResponse.model_validate(c) for c in listing.communities],
        total=listing.total,
        total_pages=listing.total_pages,
        current_page=listing.page,
    )


@router.get("/{community_id}", response_model=CommunityResponse)
async def get_community(community_id: int, service: MembershipServiceDep) -> Community:
    """Get a specific community by ID."""
    return service.get(community_id)


@router.post("/", response_model=CommunityResponse, status_code=status.HTTP_201_CREATED)
async def create_community(
    community_data: CommunityCreate,
    current_user: CurrentUserDep,
    service: MembershipServiceDep,
) -> Community:
    """Create a new community with the caller as admin and first member."""
    return service.create(current_user.id, community_data)


@router.put("/{community_id}", response_model=CommunityResponse)
async def update_community(
    community_id: int,
    changes: CommunityUpdate,
    current_user: CurrentUserDep,
    service: MembershipServiceDep,
) -> Community:
    """Update community details (admin only)."""
    return service.update(current_user.id, community_id, changes)


@router.get("/{community_id}/members", response_model=list[UserSummary])
async def list_members(community_id: int, service: MembershipServiceDep) -> list[User]:
    """List the members of a community in join order."""
    return list(service.members(community_id))


@router.post("/{community_id}/join", response_model=MessageResponse)
async def join_community(
    community_id: int,
    current_user: CurrentUserDep,
    service: MembershipServiceDep,
) -> MessageResponse:
    """Join a community."""
    return MessageResponse(message=service.join(current_user.id, community_id))


@router.post("/{community_id}/leave", response_model=MessageResponse)
async def leave_community(
    community_id: int,
    current_user: CurrentUserDep,
    service: MembershipServiceDep,
) -> MessageResponse:
    """Leave a community."""
    return MessageResponse(message=service.leave(current_user.id, community_id))
