"""Community membership: the user ↔ community relationship.

Membership is stored twice, as ``User.joined_communities`` and as
``Community.members``. Every mutation here writes the community side first
and the user side second, then commits both in one transaction while holding
row locks on the two documents.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from rideclub.core.errors import (
    ConflictError,
    InvalidOperationError,
    NotFoundError,
    PermissionDeniedError,
)
from rideclub.core.settings import settings
from rideclub.models import Community, User
from rideclub.schemas.community import CommunityCreate, CommunityUpdate
from rideclub.services.relations import (
    add_ref,
    commit_or_conflict,
    lock_community,
    lock_user,
    member_entry,
    remove_ref,
    without_user,
)
from rideclub.services.user_service import get_users_by_ids

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommunityListing:
    """One page of communities plus paging totals."""

    communities: Sequence[Community]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


class MembershipService:
    """Service handling community creation, join and leave."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, community_id: int) -> Community:
        """Return a community or raise ``NotFoundError``."""
        community = self.db.get(Community, community_id)
        if community is None:
            raise NotFoundError("Community not found")
        return community

    def list_public(
        self,
        *,
        city: str | None = None,
        bike_type: str | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> CommunityListing:
        """List public communities, largest first."""
        page = max(page, 1)
        limit = settings.clamp_page_size(limit)

        query = select(Community).where(Community.is_public.is_(True))
        if city:
            query = query.where(Community.city.ilike(f"%{city}%"))
        if bike_type:
            query = query.where(Community.bike_type == bike_type)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(Community.name.ilike(pattern), Community.description.ilike(pattern))
            )

        total = self.db.scalar(select(func.count()).select_from(query.subquery())) or 0
        rows = self.db.scalars(
            query.order_by(Community.member_count.desc(), Community.created_at.desc(), Community.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()
        return CommunityListing(communities=rows, total=total, page=page, limit=limit)

    def members(self, community_id: int) -> Sequence[User]:
        """Return the users listed in the community's member list, in join order."""
        community = self.get(community_id)
        return get_users_by_ids(self.db, community.member_ids())

    def create(self, admin_id: int, data: CommunityCreate) -> Community:
        """Create a community whose admin is also its first member.

        Raises:
            NotFoundError: If the admin user does not exist.
            ConflictError: If a community with the same name exists in the city.
        """
        self._ensure_unique_name(data.name, data.city)
        admin = lock_user(self.db, admin_id)

        community = Community(
            name=data.name,
            description=data.description,
            city=data.city,
            bike_type=data.bike_type,
            admin_id=admin.id,
            is_public=data.is_public,
            rules=list(data.rules),
            tags=[tag.strip() for tag in data.tags if tag.strip()],
            members=[member_entry(admin.id)],
        )
        self.db.add(community)
        # The community id is needed for the user side.
        self.db.flush()
        admin.joined_communities = add_ref(admin.joined_communities, community.id)
        commit_or_conflict(self.db)
        self.db.refresh(community)
        logger.info("User %s created community %s", admin.id, community.id)
        return community

    def update(self, user_id: int, community_id: int, data: CommunityUpdate) -> Community:
        """Apply admin edits to a community's details."""
        community = lock_community(self.db, community_id)
        if community.admin_id != user_id:
            raise PermissionDeniedError("Only admin can update community")

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "name" in changes and changes["name"].strip().lower() != community.name.lower():
            self._ensure_unique_name(changes["name"], community.city, exclude_id=community.id)
        for key, value in changes.items():
            setattr(community, key, value.strip() if isinstance(value, str) else value)

        commit_or_conflict(self.db)
        self.db.refresh(community)
        return community

    def join(self, user_id: int, community_id: int) -> str:
        """Add ``user_id`` to the community on both sides.

        Raises:
            NotFoundError: If the community or the user does not exist.
            ConflictError: If the user is already in the member list.
        """
        community = lock_community(self.db, community_id)
        user = lock_user(self.db, user_id)

        if community.has_member(user.id):
            raise ConflictError("Already a member of this community")

        community.members = [*(community.members or []), member_entry(user.id)]
        user.joined_communities = add_ref(user.joined_communities, community.id)
        commit_or_conflict(self.db)

        logger.info("User %s joined community %s", user.id, community.id)
        return "Successfully joined the community"

    def leave(self, user_id: int, community_id: int) -> str:
        """Remove ``user_id`` from the community on both sides.

        Leaving a community the user is not in is acknowledged without change.

        Raises:
            NotFoundError: If the community or the user does not exist.
            InvalidOperationError: If the user is the community admin.
        """
        community = lock_community(self.db, community_id)
        if community.admin_id == user_id:
            raise InvalidOperationError(
                "Admin cannot leave the community without transferring admin rights first"
            )
        user = lock_user(self.db, user_id)

        was_member = community.has_member(user.id)
        if was_member:
            community.members = without_user(community.members, user.id)
        if community.id in (user.joined_communities or []):
            user.joined_communities = remove_ref(user.joined_communities, community.id)
        commit_or_conflict(self.db)

        if was_member:
            logger.info("User %s left community %s", user.id, community.id)
        return "Successfully left the community"

    def _ensure_unique_name(self, name: str, city: str, exclude_id: int | None = None) -> None:
        query = select(Community.id).where(
            func.lower(Community.name) == name.strip().lower(),
            func.lower(Community.city) == city.strip().lower(),
        )
        if exclude_id is not None:
            query = query.where(Community.id != exclude_id)
        if self.db.scalar(query) is not None:
            raise ConflictError(f'A community named "{name.strip()}" already exists in {city.strip()}')
