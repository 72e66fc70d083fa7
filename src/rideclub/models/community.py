"""SQLAlchemy model for communities and their member list."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text, event
from sqlalchemy.orm import Mapped, mapped_column

from rideclub.db.session import Base
from rideclub.db.time import utcnow

COMMUNITY_BIKE_TYPES = (
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
    "All Types",
)


class Community(Base):
    """A riders' community.

    ``members`` holds ``{"user": <id>, "joined_at": <iso8601>}`` entries and is
    the group side of the membership relationship.
    """

    __tablename__ = "communities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    city: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    bike_type: Mapped[str] = mapped_column(String(32), nullable=False)
    admin_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    rules: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    members: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    # Derived; always len(members).
    member_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def member_ids(self) -> list[int]:
        """Return member user ids in list order."""
        return [int(entry["user"]) for entry in self.members or []]

    def has_member(self, user_id: int) -> bool:
        """Return True when ``user_id`` appears in the member list."""
        return user_id in self.member_ids()


@event.listens_for(Community, "before_insert")
@event.listens_for(Community, "before_update")
def _sync_member_count(_mapper: Any, _connection: Any, target: Community) -> None:
    target.member_count = len(target.members or [])
