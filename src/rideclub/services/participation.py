"""Event participation: the user ↔ event relationship.

Participation is stored as ``User.registered_events`` and as
``Event.participants``. The capacity check runs while the event row is
locked and the commit is version-checked, so two registrations cannot both
take the last place.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Literal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from rideclub.core.errors import (
    CapacityExceededError,
    ConflictError,
    InvalidOperationError,
    NotFoundError,
    PermissionDeniedError,
)
from rideclub.core.settings import settings
from rideclub.db.time import as_utc, utcnow, utcnow_iso
from rideclub.models import Community, Event, User
from rideclub.models.event import PARTICIPANT_CANCELLED, PARTICIPANT_REGISTERED
from rideclub.schemas.event import EventCreate, EventUpdate
from rideclub.services.relations import (
    add_ref,
    commit_or_conflict,
    lock_event,
    lock_user,
    participant_entry,
    remove_ref,
    without_user,
)

logger = logging.getLogger(__name__)

UnregisterMode = Literal["remove", "cancel"]


@dataclass(frozen=True)
class EventListing:
    """One page of events plus paging totals."""

    events: Sequence[Event]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def _with_registration(entries: list[dict[str, Any]] | None, user_id: int) -> list[dict[str, Any]]:
    """Return participants with a live registration for ``user_id``.

    A cancelled row for the user is re-activated rather than duplicated.
    """
    updated: list[dict[str, Any]] = []
    reactivated = False
    for entry in entries or []:
        entry = dict(entry)
        if not reactivated and int(entry["user"]) == user_id:
            entry["status"] = PARTICIPANT_REGISTERED
            entry["registered_at"] = utcnow_iso()
            reactivated = True
        updated.append(entry)
    if not reactivated:
        updated.append(participant_entry(user_id))
    return updated


def _cancelled(entries: list[dict[str, Any]] | None, user_id: int) -> list[dict[str, Any]]:
    updated = []
    for entry in entries or []:
        entry = dict(entry)
        if int(entry["user"]) == user_id:
            entry["status"] = PARTICIPANT_CANCELLED
        updated.append(entry)
    return updated


class ParticipationService:
    """Service handling events and their registrations."""

    def __init__(self, db: Session, unregister_mode: UnregisterMode | None = None) -> None:
        self.db = db
        self.unregister_mode: UnregisterMode = unregister_mode or settings.unregister_mode

    def get(self, event_id: int) -> Event:
        """Return an event or raise ``NotFoundError``."""
        event = self.db.get(Event, event_id)
        if event is None:
            raise NotFoundError("Event not found")
        return event

    def list_public(
        self,
        *,
        community_id: int | None = None,
        upcoming: bool = True,
        event_type: str | None = None,
        difficulty: str | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> EventListing:
        """List active public events in date order."""
        page = max(page, 1)
        limit = settings.clamp_page_size(limit)

        query = select(Event).where(Event.is_active.is_(True), Event.is_public.is_(True))
        if community_id is not None:
            query = query.where(Event.community_id == community_id)
        if upcoming:
            query = query.where(Event.event_date >= utcnow())
        if event_type:
            query = query.where(Event.event_type == event_type)
        if difficulty:
            query = query.where(Event.difficulty == difficulty)

        total = self.db.scalar(select(func.count()).select_from(query.subquery())) or 0
        rows = self.db.scalars(
            query.order_by(Event.event_date.asc(), Event.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()
        return EventListing(events=rows, total=total, page=page, limit=limit)

    def create(self, organizer_id: int, data: EventCreate) -> Event:
        """Create an event inside a community the organizer belongs to.

        Raises:
            NotFoundError: If the community does not exist.
            PermissionDeniedError: If the organizer is not a member.
            InvalidOperationError: If the event date is not in the future.
        """
        community = self.db.get(Community, data.community_id)
        if community is None:
            raise NotFoundError("Community not found")
        if not community.has_member(organizer_id):
            raise PermissionDeniedError("You must be a member of the community to create events")
        event_date = as_utc(data.event_date)
        if event_date <= utcnow():
            raise InvalidOperationError("Event date must be in the future")

        event = Event(
            title=data.title.strip(),
            description=data.description.strip(),
            organizer_id=organizer_id,
            community_id=community.id,
            event_date=event_date,
            start_time=data.start_time,
            end_time=data.end_time,
            location_name=data.location_name.strip(),
            location_address=data.location_address.strip(),
            max_participants=data.max_participants or settings.default_max_participants,
            event_type=data.event_type,
            difficulty=data.difficulty,
            distance_km=data.distance_km,
            requirements=list(data.requirements),
            tags=[tag.strip() for tag in data.tags if tag.strip()],
            is_public=data.is_public,
            participants=[],
        )
        self.db.add(event)
        commit_or_conflict(self.db)
        self.db.refresh(event)
        logger.info("User %s created event %s in community %s", organizer_id, event.id, community.id)
        return event

    def update(self, user_id: int, event_id: int, data: EventUpdate) -> Event:
        """Apply organizer edits to an event."""
        event = lock_event(self.db, event_id)
        if event.organizer_id != user_id:
            raise PermissionDeniedError("Only the organizer can update this event")

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        new_max = changes.get("max_participants")
        if new_max is not None and new_max < len(event.registered_ids()):
            raise InvalidOperationError(
                "Max participants cannot be lower than the number of registered participants"
            )
        if "event_date" in changes:
            changes["event_date"] = as_utc(changes["event_date"])
        for key, value in changes.items():
            setattr(event, key, value)

        commit_or_conflict(self.db)
        self.db.refresh(event)
        return event

    def delete(self, user_id: int, event_id: int) -> None:
        """Delete an event and pull it from every user's registered events."""
        event = lock_event(self.db, event_id)
        if event.organizer_id != user_id:
            raise PermissionDeniedError("Only the organizer can delete this event")

        referencing = self._users_referencing(event.id)
        for user in referencing:
            user.registered_events = remove_ref(user.registered_events, event.id)
        self.db.delete(event)
        commit_or_conflict(self.db)
        logger.info(
            "User %s deleted event %s (%d registrations released)",
            user_id,
            event_id,
            len(referencing),
        )

    def register(self, user_id: int, event_id: int) -> str:
        """Register ``user_id`` for the event on both sides.

        Raises:
            NotFoundError: If the event or the user does not exist.
            InvalidOperationError: If the event is not active.
            CapacityExceededError: If every place is taken.
            ConflictError: If the user already holds a live registration.
        """
        event = lock_event(self.db, event_id)
        if not event.is_active:
            raise InvalidOperationError("Event is not active")

        registered = event.registered_ids()
        if len(registered) >= event.max_participants:
            raise CapacityExceededError("Event is full")

        user = lock_user(self.db, user_id)
        if user.id in registered:
            raise ConflictError("Already registered for this event")

        event.participants = _with_registration(event.participants, user.id)
        user.registered_events = add_ref(user.registered_events, event.id)
        commit_or_conflict(self.db)

        logger.info("User %s registered for event %s", user.id, event.id)
        return "Successfully registered for the event"

    def unregister(self, user_id: int, event_id: int) -> str:
        """Withdraw ``user_id`` from the event on both sides.

        With the ``remove`` policy the participant row is deleted; with
        ``cancel`` it is kept with status ``cancelled``. Withdrawing a user who
        is not registered is acknowledged without change.

        Raises:
            NotFoundError: If the event or the user does not exist.
        """
        event = lock_event(self.db, event_id)
        user = lock_user(self.db, user_id)

        if self.unregister_mode == "cancel":
            if event.is_registered(user.id):
                event.participants = _cancelled(event.participants, user.id)
        elif any(int(entry["user"]) == user.id for entry in event.participants or []):
            event.participants = without_user(event.participants, user.id)
        if event.id in (user.registered_events or []):
            user.registered_events = remove_ref(user.registered_events, event.id)
        commit_or_conflict(self.db)

        logger.info("User %s unregistered from event %s", user.id, event.id)
        return "Successfully unregistered from the event"

    def _users_referencing(self, event_id: int) -> list[User]:
        # JSON containment is not portable across backends; filter in Python.
        rows = self.db.execute(select(User.id, User.registered_events)).all()
        ids = [user_id for user_id, refs in rows if event_id in (refs or [])]
        if not ids:
            return []
        query = select(User).where(User.id.in_(ids)).order_by(User.id).with_for_update()
        return list(self.db.scalars(query).all())
