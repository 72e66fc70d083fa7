# src/rideclub/models/user.py
"""SQLAlchemy model for rider profiles and their side of each relationship."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rideclub.db.session import Base
from rideclub.db.time import utcnow

USER_BIKE_TYPES = (
    "Royal Enfield",
    "Bajaj",
    "TVS",
    "Honda",
    "Yamaha",
    "KTM",
    "Harley Davidson",
    "Ducati",
    "Kawasaki",
    "Suzuki",
    "Other",
    "",
)


class User(Base):
    """A rider account.

    The four list columns are this user's half of the two-sided relationships:
    ``joined_communities`` pairs with ``Community.members``,
    ``registered_events`` with ``Event.participants``, and ``following`` /
    ``followers`` with the same columns on the other user. Lists are replaced,
    never mutated in place, so SQLAlchemy sees every change.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Stored lower-cased; uniqueness is case-insensitive by construction.
    email: Mapped[str] = mapped_column(String(254), unique=True, nullable=False)
    external_auth_id: Mapped[str | None] = mapped_column(Text, unique=True, nullable=True)

    name: Mapped[str] = mapped_column(String(50), nullable=False)
    city: Mapped[str] = mapped_column(Text, nullable=False, default="")
    bike_type: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    bike_model: Mapped[str | None] = mapped_column(Text, nullable=True)
    bio: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    joined_communities: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    registered_events: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    followers: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    following: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def followers_count(self) -> int:
        """Return the number of users following this user."""
        return len(self.followers or [])

    @property
    def following_count(self) -> int:
        """Return the number of users this user follows."""
        return len(self.following or [])
