"""Follow graph: a ``following`` edge on one user paired with a ``followers`` edge on the other."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy.orm import Session

from rideclub.core.errors import ConflictError, InvalidOperationError
from rideclub.models import User
from rideclub.services.relations import add_ref, commit_or_conflict, lock_user, remove_ref
from rideclub.services.user_service import get_users_by_ids, require_user

logger = logging.getLogger(__name__)


class FollowService:
    """Service handling follow and unfollow between riders."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _lock_pair(self, follower_id: int, target_id: int) -> tuple[User, User]:
        # Lock in id order so two users following each other cannot deadlock.
        first, second = sorted((follower_id, target_id))
        locked = {first: lock_user(self.db, first), second: lock_user(self.db, second)}
        return locked[follower_id], locked[target_id]

    def follow(self, follower_id: int, target_id: int) -> str:
        """Record that ``follower_id`` follows ``target_id`` on both users.

        Raises:
            InvalidOperationError: If a user tries to follow themselves.
            NotFoundError: If either user does not exist.
            ConflictError: If the edge already exists.
        """
        if follower_id == target_id:
            raise InvalidOperationError("You cannot follow yourself")
        follower, target = self._lock_pair(follower_id, target_id)
        if target.id in (follower.following or []):
            raise ConflictError("Already following this user")

        follower.following = add_ref(follower.following, target.id)
        target.followers = add_ref(target.followers, follower.id)
        commit_or_conflict(self.db)

        logger.info("User %s followed user %s", follower.id, target.id)
        return "Successfully followed user"

    def unfollow(self, follower_id: int, target_id: int) -> str:
        """Remove the follow edge from both users; absent edges are a no-op."""
        if follower_id == target_id:
            raise InvalidOperationError("You cannot unfollow yourself")
        follower, target = self._lock_pair(follower_id, target_id)

        follower.following = remove_ref(follower.following, target.id)
        target.followers = remove_ref(target.followers, follower.id)
        commit_or_conflict(self.db)

        logger.info("User %s unfollowed user %s", follower.id, target.id)
        return "Successfully unfollowed user"

    def is_following(self, follower_id: int, target_id: int) -> bool:
        follower = require_user(self.db, follower_id)
        return target_id in (follower.following or [])

    def followers(self, user_id: int) -> Sequence[User]:
        return get_users_by_ids(self.db, require_user(self.db, user_id).followers or [])

    def following(self, user_id: int) -> Sequence[User]:
        return get_users_by_ids(self.db, require_user(self.db, user_id).following or [])
