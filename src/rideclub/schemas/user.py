"""User-related Pydantic schemas."""

import re
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

EMAIL_PATTERN = re.compile(r"^\w+([.-]?\w+)*@\w+([.-]?\w+)*(\.\w{2,3})+$")

UserBikeType = Literal[
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
]


def normalize_email(value: str) -> str:
    """Return the canonical (trimmed, lower-cased) form of an email address."""
    return value.strip().lower()


class UserCreate(BaseModel):
    """Schema for signing up a new rider."""

    name: str = Field(..., min_length=1, max_length=50, description="Display name")
    email: str = Field(..., description="Unique email address (case-insensitive)")
    external_auth_id: str | None = Field(None, description="Identifier from an external provider")
    city: str = Field("", max_length=100)
    bike_type: UserBikeType = ""
    bike_model: str | None = Field(None, max_length=100)
    bio: str = Field("", max_length=200)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Reject names that are only whitespace."""
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Validate and normalise the email address."""
        v = normalize_email(v)
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Please enter a valid email")
        return v


class ProfileUpdateRequest(BaseModel):
    """Schema for updating the caller's own profile."""

    name: str | None = Field(None, min_length=1, max_length=50)
    city: str | None = Field(None, max_length=100)
    bike_type: UserBikeType | None = None
    bike_model: str | None = Field(None, max_length=100)
    bio: str | None = Field(None, max_length=200)


class UserResponse(BaseModel):
    """Public profile information returned by the API."""

    id: int
    name: str
    city: str
    bike_type: str
    bike_model: str | None
    bio: str
    created_at: datetime
    joined_communities: list[int]
    registered_events: list[int]
    followers_count: int = 0
    following_count: int = 0

    model_config = ConfigDict(from_attributes=True)


class SignupResponse(BaseModel):
    """Signup response carrying the new profile and a bearer token."""

    user: UserResponse
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field("bearer", description="Token type")


class UserSummary(BaseModel):
    """Compact user reference used in member and follower lists."""

    id: int
    name: str
    city: str
    bike_type: str

    model_config = ConfigDict(from_attributes=True)
