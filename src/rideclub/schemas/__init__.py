# src/rideclub/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .common import MessageResponse
from .community import CommunityCreate, CommunityPage, CommunityResponse, CommunityUpdate
from .event import EventCreate, EventPage, EventResponse, EventUpdate
from .follow import FollowList, FollowStatus
from .user import ProfileUpdateRequest, SignupResponse, UserCreate, UserResponse, UserSummary

__all__ = [
    "CommunityCreate", "CommunityPage", "CommunityResponse", "CommunityUpdate",
    "EventCreate", "EventPage", "EventResponse", "EventUpdate",
    "FollowList", "FollowStatus", "MessageResponse",
    "ProfileUpdateRequest", "SignupResponse", "UserCreate", "UserResponse", "UserSummary",
]
