"""Follow-graph Pydantic schemas."""

from pydantic import BaseModel

from .user import UserSummary


class FollowStatus(BaseModel):
    """Whether the caller follows a given user."""

    is_following: bool


class FollowList(BaseModel):
    """Followers or followees of a user."""

    users: list[UserSummary]
    count: int
