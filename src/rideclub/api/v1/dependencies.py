"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from rideclub.core.security import decode_subject
from rideclub.db.session import get_db
from rideclub.models import User
from rideclub.services.follows import FollowService
from rideclub.services.membership import MembershipService
from rideclub.services.participation import ParticipationService

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer token credentials
        db: Database session

    Returns:
        User object for the authenticated user

    Raises:
        HTTPException: If token is invalid or user not found
    """
    try:
        user_id = decode_subject(credentials.credentials)
    except JWTError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err

    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


def get_membership_service(db: SessionDep) -> MembershipService:
    return MembershipService(db)


def get_participation_service(db: SessionDep) -> ParticipationService:
    return ParticipationService(db)


def get_follow_service(db: SessionDep) -> FollowService:
    return FollowService(db)


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]
MembershipServiceDep = Annotated[MembershipService, Depends(get_membership_service)]
ParticipationServiceDep = Annotated[ParticipationService, Depends(get_participation_service)]
FollowServiceDep = Annotated[FollowService, Depends(get_follow_service)]
