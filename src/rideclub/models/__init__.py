# src/rideclub/models/__init__.py
"""SQLAlchemy models for the RideClub application."""

from .community import Community
from .event import Event
from .user import User

__all__ = [
    "Community",
    "Event",
    "User",
]
