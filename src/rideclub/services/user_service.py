"""CRUD-style helpers for managing rider profiles."""
from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rideclub.core.errors import ConflictError, NotFoundError
from rideclub.models.user import User
from rideclub.schemas.user import ProfileUpdateRequest, UserCreate, normalize_email
from rideclub.services.relations import commit_or_conflict

__all__ = [
    "get_user",
    "require_user",
    "get_users_by_ids",
    "create_user",
    "update_user",
]

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: int) -> User | None:
    """Return a single user by primary key."""
    return db.get(User, user_id)


def require_user(db: Session, user_id: int) -> User:
    """Return a user or raise ``NotFoundError``."""
    user = get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def get_users_by_ids(db: Session, user_ids: Iterable[int]) -> Sequence[User]:
    """Return the users named in ``user_ids``, keeping the given order and skipping unknown ids."""
    ids = [int(u) for u in user_ids]
    if not ids:
        return []
    rows = db.scalars(select(User).where(User.id.in_(ids))).all()
    by_id = {u.id: u for u in rows}
    return [by_id[i] for i in ids if i in by_id]


def create_user(db: Session, data: UserCreate) -> User:
    """Persist a new user; email and external auth id must be unused."""
    email = normalize_email(data.email)
    clauses = [func.lower(User.email) == email]
    if data.external_auth_id:
        clauses.append(User.external_auth_id == data.external_auth_id)
    existing = db.scalars(select(User).where(or_(*clauses))).first()
    if existing is not None:
        raise ConflictError("A user with this email or external account already exists")

    db_user = User(
        email=email,
        external_auth_id=data.external_auth_id,
        name=data.name,
        city=data.city.strip(),
        bike_type=data.bike_type,
        bike_model=data.bike_model,
        bio=data.bio,
        joined_communities=[],
        registered_events=[],
        followers=[],
        following=[],
    )
    db.add(db_user)
    try:
        db.commit()
    except IntegrityError as err:
        db.rollback()
        raise ConflictError("A user with this email or external account already exists") from err
    db.refresh(db_user)
    logger.info("Created user %s", db_user.id)
    return db_user


def update_user(db: Session, db_user: User, update_data: ProfileUpdateRequest) -> User:
    """Apply partial profile updates; relationship fields are never touched here."""
    update_dict = update_data.model_dump(exclude_unset=True)
    for key, value in update_dict.items():
        if value is None and key != "bike_model":
            continue
        setattr(db_user, key, value.strip() if isinstance(value, str) else value)

    db.add(db_user)
    commit_or_conflict(db)
    db.refresh(db_user)
    return db_user
