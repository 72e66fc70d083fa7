# src/rideclub/schemas/community.py
"""Community-related Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

CommunityBikeType = Literal[
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
]


def _check_rules(rules: list[str] | None) -> list[str] | None:
    if rules is None:
        return rules
    for rule in rules:
        if len(rule) > 200:
            raise ValueError("Rule cannot exceed 200 characters")
    return rules


class CommunityCreate(BaseModel):
    """Schema for creating a new community."""

    name: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=20, max_length=500)
    city: str = Field(..., min_length=1)
    bike_type: CommunityBikeType
    is_public: bool = True
    rules: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)

    @field_validator("name", "description", "city")
    @classmethod
    def strip_text(cls, v: str) -> str:
        """Trim surrounding whitespace and reject blank values."""
        v = v.strip()
        if not v:
            raise ValueError("All required fields must be filled")
        return v

    @field_validator("rules")
    @classmethod
    def validate_rules(cls, v: list[str]) -> list[str]:
        """Enforce the per-rule length limit."""
        return _check_rules(v) or []


class CommunityUpdate(BaseModel):
    """Schema for admin edits to a community."""

    name: str | None = Field(None, min_length=3, max_length=100)
    description: str | None = Field(None, min_length=20, max_length=500)
    is_public: bool | None = None
    rules: list[str] | None = None
    tags: list[str] | None = None

    @field_validator("rules")
    @classmethod
    def validate_rules(cls, v: list[str] | None) -> list[str] | None:
        """Enforce the per-rule length limit."""
        return _check_rules(v)


class MemberEntry(BaseModel):
    """One entry of a community's member list."""

    user: int
    joined_at: datetime


class CommunityResponse(BaseModel):
    """Schema for community information returned by the API."""

    id: int
    name: str
    description: str
    city: str
    bike_type: str
    admin_id: int
    is_public: bool
    rules: list[str]
    tags: list[str]
    members: list[MemberEntry]
    member_count: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommunityPage(BaseModel):
    """Paginated community listing."""

    communities: list[CommunityResponse]
    total: int
    total_pages: int
    current_page: int
