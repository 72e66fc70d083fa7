"""Follow-graph endpoints for the RideClub API."""

from __future__ import annotations

from fastapi import APIRouter

from rideclub.api.v1.dependencies import CurrentUserDep, FollowServiceDep
from rideclub.schemas.common import MessageResponse
from rideclub.schemas.follow import FollowList, FollowStatus
from rideclub.schemas.user import UserSummary

router = APIRouter(prefix="/follow", tags=["follow"])


@router.post("/{user_id}", response_model=MessageResponse)
async def follow_user(
    user_id: int,
    current_user: CurrentUserDep,
    service: FollowServiceDep,
) -> MessageResponse:
    """Follow another rider."""
    return MessageResponse(message=service.follow(current_user.id, user_id))


@router.delete("/{user_id}", response_model=MessageResponse)
async def unfollow_user(
    user_id: int,
    current_user: CurrentUserDep,
    service: FollowServiceDep,
) -> MessageResponse:
    """Stop following another rider."""
    return MessageResponse(message=service.unfollow(current_user.id, user_id))


@router.get("/status/{user_id}", response_model=FollowStatus)
async def follow_status(
    user_id: int,
    current_user: CurrentUserDep,
    service: FollowServiceDep,
) -> FollowStatus:
    """Report whether the caller follows ``user_id``."""
    return FollowStatus(is_following=service.is_following(current_user.id, user_id))


@router.get("/followers/{user_id}", response_model=FollowList)
async def list_followers(user_id: int, _current_user: CurrentUserDep, service: FollowServiceDep) -> FollowList:
    users = [UserSummary.model_validate(u) for u in service.followers(user_id)]
    return FollowList(users=users, count=len(users))


@router.get("/following/{user_id}", response_model=FollowList)
async def list_following(user_id: int, _current_user: CurrentUserDep, service: FollowServiceDep) -> FollowList:
    users = [UserSummary.model_validate(u) for u in service.following(user_id)]
    return FollowList(users=users, count=len(users))
