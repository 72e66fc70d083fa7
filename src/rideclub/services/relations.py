"""Helpers for the reference arrays that make up each two-sided relationship.

All helpers return new lists. JSON columns are not mutation-tracked, so the
caller assigns the result back to the attribute.
"""
from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from rideclub.core.errors import ConcurrentModificationError, NotFoundError
from rideclub.db.time import utcnow_iso
from rideclub.models import Community, Event, User
from rideclub.models.event import PARTICIPANT_REGISTERED


def add_ref(refs: Iterable[int] | None, ref: int) -> list[int]:
    """Return ``refs`` with ``ref`` appended unless already present."""
    current = [int(r) for r in refs or []]
    if ref in current:
        return current
    return [*current, ref]


def remove_ref(refs: Iterable[int] | None, ref: int) -> list[int]:
    """Return ``refs`` without any occurrence of ``ref``."""
    return [int(r) for r in refs or [] if int(r) != ref]


def member_entry(user_id: int) -> dict[str, Any]:
    return {"user": user_id, "joined_at": utcnow_iso()}


def participant_entry(user_id: int, status: str = PARTICIPANT_REGISTERED) -> dict[str, Any]:
    return {"user": user_id, "registered_at": utcnow_iso(), "status": status}


def without_user(entries: Iterable[dict[str, Any]] | None, user_id: int) -> list[dict[str, Any]]:
    """Return entries whose ``user`` is not ``user_id``; matches by identity, never index."""
    return [dict(entry) for entry in entries or [] if int(entry["user"]) != user_id]


def lock_user(db: Session, user_id: int) -> User:
    """Load a user row for update or raise ``NotFoundError``."""
    user = db.get(User, user_id, with_for_update=True)
    if user is None:
        raise NotFoundError("User not found")
    return user


def lock_community(db: Session, community_id: int) -> Community:
    """Load a community row for update or raise ``NotFoundError``."""
    community = db.get(Community, community_id, with_for_update=True)
    if community is None:
        raise NotFoundError("Community not found")
    return community


def lock_event(db: Session, event_id: int) -> Event:
    """Load an event row for update or raise ``NotFoundError``."""
    event = db.get(Event, event_id, with_for_update=True)
    if event is None:
        raise NotFoundError("Event not found")
    return event


def commit_or_conflict(db: Session) -> None:
    """Commit pending changes (both sides of a relationship) as one transaction.

    A version mismatch means another writer changed one of the documents
    after it was read; the transaction is rolled back and surfaced as a
    conflict. Other database errors are rolled back and re-raised.
    """
    try:
        db.commit()
    except StaleDataError as err:
        db.rollback()
        raise ConcurrentModificationError(
            "The record was modified concurrently, please retry"
        ) from err
    except SQLAlchemyError:
        db.rollback()
        raise
