"""Out-of-band repair of drift between the two sides of each relationship.

Each relationship is stored twice: on the user (``joined_communities``,
``registered_events``, ``following``) and on the other document
(``Community.members``, ``Event.participants``, ``followers``). Manual edits
and legacy data can leave the two sides disagreeing. The reconciler scans every
group document, compares it with the users that reference it, and rewrites
the side that is not the configured ground truth.

Every item (community, event or user) is repaired in its own transaction. A
failed item is rolled back, logged and counted; the batch always continues.
"""

from __future__ import annotations

import logging

from collections.abc import Callable, Iterable
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rideclub.core.settings import settings
from rideclub.models import Community, Event, User
from rideclub.models.event import PARTICIPANT_CANCELLED, PARTICIPANT_REGISTERED
from rideclub.services.relations import (
    add_ref,
    member_entry,
    participant_entry,
    remove_ref,
    without_user,
)

logger = logging.getLogger(__name__)


class GroundTruth(str, Enum):
    """Which side of a user ↔ group relationship is trusted during repair."""

    USERS = "users"
    GROUPS = "groups"


class FollowTruth(str, Enum):
    """Which half of the follow graph is trusted during repair."""

    FOLLOWING = "following"
    FOLLOWERS = "followers"


@dataclass
class ItemReport:
    """Outcome of reconciling one community, event or user.

    ``missing_in_members`` lists users referenced from the user side but absent
    from the group-side list (members, registered participants, or followers).
    ``missing_in_users`` lists users present in the group-side list whose own
    document lacks the reference.
    """

    kind: str
    item_id: int
    missing_in_members: list[int] = field(default_factory=list)
    missing_in_users: list[int] = field(default_factory=list)
    count_stale: bool = False
    rewritten: bool = False
    count: int = 0
    over_capacity: bool = False
    error: str | None = None

    @property
    def drifted(self) -> bool:
        return bool(self.missing_in_members or self.missing_in_users or self.count_stale)


@dataclass
class ReconcileReport:
    """Aggregated result of one reconciliation pass."""

    scope: str
    ground_truth: str
    dry_run: bool = False
    items: list[ItemReport] = field(default_factory=list)

    @property
    def checked(self) -> int:
        return len(self.items)

    @property
    def drifted(self) -> int:
        return sum(1 for item in self.items if item.drifted)

    @property
    def rewritten(self) -> int:
        return sum(1 for item in self.items if item.rewritten)

    @property
    def failed(self) -> int:
        return sum(1 for item in self.items if item.error is not None)

    def as_dict(self) -> dict[str, Any]:
        return {
            "scope": self.scope,
            "ground_truth": self.ground_truth,
            "dry_run": self.dry_run,
            "checked": self.checked,
            "drifted": self.drifted,
            "rewritten": self.rewritten,
            "failed": self.failed,
            "items": [asdict(item) for item in self.items],
        }


def _refs(values: Iterable[Any] | None) -> list[int]:
    return [int(v) for v in values or []]


class Reconciler:
    """Detects and heals drift in memberships, participations and follows.

    Each item is handled in its own transaction: the item's row is locked,
    the users referencing it are re-read and locked, both sides are compared
    and the repair is committed. Join, leave, register and follow take the
    same group-row lock first, so they cannot interleave with a repair.
    """

    def __init__(
        self,
        db: Session,
        *,
        membership_truth: GroundTruth | str | None = None,
        follow_truth: FollowTruth | str | None = None,
        dry_run: bool = False,
        unregister_mode: str | None = None,
    ) -> None:
        self.db = db
        self.membership_truth = GroundTruth(membership_truth or settings.reconcile_membership_truth)
        self.follow_truth = FollowTruth(follow_truth or settings.reconcile_follow_truth)
        self.dry_run = dry_run
        self.unregister_mode = unregister_mode or settings.unregister_mode

    # ------------------------------------------------------------------
    # Shared plumbing
    # ------------------------------------------------------------------

    def _isolated(self, item: ItemReport, work: Callable[[], bool | None]) -> bool | None:
        """Run ``work`` for one item in its own transaction.

        ``work`` locks and reads the item, records what it found on ``item``
        and applies the repair. It returns True when it changed something,
        False when there is nothing to write, and None when the item no longer
        exists. Database errors are rolled back and recorded on ``item``.
        """
        try:
            changed = work()
            if changed:
                self.db.commit()
            else:
                # Nothing to write; release the row locks.
                self.db.rollback()
        except SQLAlchemyError as exc:
            self.db.rollback()
            item.rewritten = False
            item.error = str(exc) or exc.__class__.__name__
            logger.exception("Failed to reconcile %s %s", item.kind, item.item_id)
            return None
        if changed:
            item.rewritten = True
            logger.warning(
                "Reconciled %s %s: %d missing in members, %d missing in users",
                item.kind,
                item.item_id,
                len(item.missing_in_members),
                len(item.missing_in_users),
            )
        return changed

    def _lock(self, model: type[Any], ident: int) -> Any:
        return self.db.get(
            model, ident, with_for_update=not self.dry_run, populate_existing=True
        )

    def _lock_users(self, user_ids: Iterable[int]) -> dict[int, User]:
        ids = sorted(set(user_ids))
        if not ids:
            return {}
        query = (
            select(User)
            .where(User.id.in_(ids))
            .order_by(User.id)
            .execution_options(populate_existing=True)
        )
        if not self.dry_run:
            query = query.with_for_update()
        return {user.id: user for user in self.db.scalars(query).all()}

    def _claimers(self, column: str, ref: int) -> dict[int, User]:
        """Lock and return the users whose ``column`` lists ``ref``, keyed by id."""
        # JSON containment is not portable across backends; filter in Python.
        rows = self.db.execute(select(User.id, getattr(User, column))).all()
        candidates = [user_id for user_id, refs in rows if ref in _refs(refs)]
        locked = self._lock_users(candidates)
        return {
            user_id: user
            for user_id, user in locked.items()
            if ref in _refs(getattr(user, column))
        }

    def _prune_dangling(self, model: type[Any], kind: str, column: str) -> list[ItemReport]:
        """Pull references to groups that no longer exist from the user side."""
        known = set(self.db.scalars(select(model.id)).all())
        referenced = {
            ref
            for _, refs in self.db.execute(select(User.id, getattr(User, column))).all()
            for ref in _refs(refs)
        }
        reports = []
        for group_id in sorted(referenced - known):
            item = ItemReport(kind=kind, item_id=group_id)

            def work(group_id: int = group_id, item: ItemReport = item) -> bool:
                if self.db.get(model, group_id) is not None:
                    return False
                claimers = self._claimers(column, group_id)
                item.missing_in_members = sorted(claimers)
                if self.dry_run or not claimers:
                    return False
                for user in claimers.values():
                    setattr(user, column, remove_ref(getattr(user, column), group_id))
                return True

            self._isolated(item, work)
            reports.append(item)
        return reports

    # ------------------------------------------------------------------
    # Memberships
    # ------------------------------------------------------------------

    def reconcile_memberships(self) -> ReconcileReport:
        """Make ``Community.members`` and ``User.joined_communities`` agree."""
        report = ReconcileReport(
            scope="memberships",
            ground_truth=self.membership_truth.value,
            dry_run=self.dry_run,
        )
        community_ids = list(self.db.scalars(select(Community.id).order_by(Community.id)).all())
        logger.info("Checking %d communities", len(community_ids))

        for community_id in community_ids:
            item = self._reconcile_community(community_id)
            if item is not None:
                report.items.append(item)

        report.items.extend(self._prune_dangling(Community, "community", "joined_communities"))
        self.db.expire_all()
        return report

    def _reconcile_community(self, community_id: int) -> ItemReport | None:
        item = ItemReport(kind="community", item_id=community_id)

        def work() -> bool | None:
            community = self._lock(Community, community_id)
            if community is None:
                return None
            claimers = self._claimers("joined_communities", community_id)
            admin = self._lock(User, community.admin_id)

            listed = community.member_ids()
            listed_set, claim_set = set(listed), set(claimers)
            item.missing_in_members = [u for u in sorted(claim_set) if u not in listed_set]
            item.missing_in_users = [u for u in listed if u not in claim_set]
            item.count_stale = community.member_count != len(community.members or [])
            item.count = len(community.members or [])
            admin_unpaired = admin is not None and (
                admin.id not in claim_set or admin.id not in listed_set
            )
            if self.dry_run or not (item.drifted or admin_unpaired):
                return False

            if self.membership_truth is GroundTruth.USERS:
                target = sorted(claim_set)
                if admin is not None and admin.id not in claim_set:
                    target.append(admin.id)
                if set(target) != listed_set:
                    community.members = [member_entry(u) for u in target]
            else:
                self._trust_community_side(community, item, claimers, admin)

            if admin is not None:
                admin.joined_communities = add_ref(admin.joined_communities, community_id)
            community.member_count = len(community.members or [])
            item.count = community.member_count
            return True

        outcome = self._isolated(item, work)
        if outcome is None and item.error is None:
            return None
        return item

    def _trust_community_side(
        self,
        community: Community,
        item: ItemReport,
        claimers: dict[int, User],
        admin: User | None,
    ) -> None:
        community_id = community.id
        for user_id in item.missing_in_members:
            if admin is not None and user_id == admin.id:
                continue
            claimer = claimers[user_id]
            claimer.joined_communities = remove_ref(claimer.joined_communities, community_id)

        listed_users = self._lock_users(item.missing_in_users)
        members = list(community.members or [])
        for user_id in item.missing_in_users:
            if user_id not in listed_users:
                members = without_user(members, user_id)
        if admin is not None and not any(int(m["user"]) == admin.id for m in members):
            members.append(member_entry(admin.id))
        if members != list(community.members or []):
            community.members = members

        for user_id in {int(m["user"]) for m in members} - set(claimers):
            user = listed_users.get(user_id)
            if user is not None:
                user.joined_communities = add_ref(user.joined_communities, community_id)

    # ------------------------------------------------------------------
    # Participations
    # ------------------------------------------------------------------

    def reconcile_participations(self) -> ReconcileReport:
        """Make registered ``Event.participants`` and ``User.registered_events`` agree."""
        report = ReconcileReport(
            scope="participations",
            ground_truth=self.membership_truth.value,
            dry_run=self.dry_run,
        )
        event_ids = list(self.db.scalars(select(Event.id).order_by(Event.id)).all())
        logger.info("Checking %d events", len(event_ids))

        for event_id in event_ids:
            item = self._reconcile_event(event_id)
            if item is not None:
                report.items.append(item)

        report.items.extend(self._prune_dangling(Event, "event", "registered_events"))
        self.db.expire_all()
        return report

    def _reconcile_event(self, event_id: int) -> ItemReport | None:
        item = ItemReport(kind="event", item_id=event_id)

        def work() -> bool | None:
            event = self._lock(Event, event_id)
            if event is None:
                return None
            claimers = self._claimers("registered_events", event_id)

            listed = event.registered_ids()
            listed_set, claim_set = set(listed), set(claimers)
            item.missing_in_members = [u for u in sorted(claim_set) if u not in listed_set]
            item.missing_in_users = [u for u in listed if u not in claim_set]
            item.count_stale = event.current_participants != len(listed)
            item.count = len(listed)
            item.over_capacity = len(listed) > event.max_participants
            if self.dry_run or not item.drifted:
                return False

            if self.membership_truth is GroundTruth.USERS:
                if item.missing_in_members or item.missing_in_users:
                    event.participants = self._participants_from_claims(event, claim_set)
            else:
                for user_id in item.missing_in_members:
                    claimer = claimers[user_id]
                    claimer.registered_events = remove_ref(claimer.registered_events, event_id)
                listed_users = self._lock_users(item.missing_in_users)
                participants = list(event.participants or [])
                for user_id in item.missing_in_users:
                    user = listed_users.get(user_id)
                    if user is None:
                        participants = without_user(participants, user_id)
                    else:
                        user.registered_events = add_ref(user.registered_events, event_id)
                if participants != list(event.participants or []):
                    event.participants = participants

            event.current_participants = len(event.registered_ids())
            item.count = event.current_participants
            item.over_capacity = item.count > event.max_participants
            if item.over_capacity:
                logger.warning(
                    "Event %s holds %d registrations for %d places after repair",
                    event_id,
                    item.count,
                    event.max_participants,
                )
            return True

        outcome = self._isolated(item, work)
        if outcome is None and item.error is None:
            return None
        return item

    def _participants_from_claims(self, event: Event, claim_set: set[int]) -> list[dict[str, Any]]:
        """Rebuild participant rows from the users that claim the event.

        Live rows of claimers are kept. Rows of other users are dropped, or
        kept as cancelled under the cancel policy; cancelled history of
        non-claimers is preserved.
        """
        kept: list[dict[str, Any]] = []
        seen: set[int] = set()
        for entry in event.participants or []:
            user_id = int(entry["user"])
            registered = entry.get("status") == PARTICIPANT_REGISTERED
            if user_id in claim_set:
                if registered and user_id not in seen:
                    kept.append(dict(entry))
                    seen.add(user_id)
                continue
            if registered:
                if self.unregister_mode != "cancel":
                    continue
                entry = {**entry, "status": PARTICIPANT_CANCELLED}
            kept.append(dict(entry))
        return kept + [participant_entry(u) for u in sorted(claim_set - seen)]

    # ------------------------------------------------------------------
    # Follow graph
    # ------------------------------------------------------------------

    def reconcile_follows(self) -> ReconcileReport:
        """Make every ``following`` edge have its ``followers`` twin (or the reverse)."""
        report = ReconcileReport(
            scope="follows",
            ground_truth=self.follow_truth.value,
            dry_run=self.dry_run,
        )
        if self.follow_truth is FollowTruth.FOLLOWING:
            trusted, derived = "following", "followers"
        else:
            trusted, derived = "followers", "following"

        user_ids = list(self.db.scalars(select(User.id).order_by(User.id)).all())
        for user_id in user_ids:
            item = self._reconcile_follow_edges(user_id, trusted, derived)
            if item is not None:
                report.items.append(item)
        self.db.expire_all()
        return report

    def _reconcile_follow_edges(self, user_id: int, trusted: str, derived: str) -> ItemReport | None:
        item = ItemReport(kind="user", item_id=user_id)

        def work() -> bool | None:
            # Follow and unfollow lock both users, so edges naming this user
            # cannot change while its row is held.
            user = self._lock(User, user_id)
            if user is None:
                return None
            rows = self.db.execute(select(User.id, getattr(User, trusted))).all()
            known = {int(other_id) for other_id, _ in rows}
            expected = sorted(
                int(other_id)
                for other_id, refs in rows
                if other_id != user_id and user_id in _refs(refs)
            )

            listed = _refs(getattr(user, derived))
            listed_set, expected_set = set(listed), set(expected)
            dangling = [u for u in _refs(getattr(user, trusted)) if u not in known]
            item.missing_in_members = [u for u in expected if u not in listed_set]
            item.missing_in_users = [u for u in listed if u not in expected_set]
            item.count = len(listed)
            if self.dry_run or not (item.drifted or dangling):
                return False

            if item.missing_in_members or item.missing_in_users:
                setattr(user, derived, expected)
            for missing in dangling:
                setattr(user, trusted, remove_ref(getattr(user, trusted), missing))
            item.count = len(getattr(user, derived) or [])
            return True

        outcome = self._isolated(item, work)
        if outcome is None and item.error is None:
            return None
        return item

    # ------------------------------------------------------------------

    def run(self, scopes: Iterable[str] = ("memberships", "participations", "follows")) -> list[ReconcileReport]:
        """Run the requested passes in order and return their reports."""
        passes = {
            "memberships": self.reconcile_memberships,
            "participations": self.reconcile_participations,
            "follows": self.reconcile_follows,
        }
        reports = []
        for scope in scopes:
            if scope not in passes:
                raise ValueError(f"Unknown reconciliation scope: {scope}")
            reports.append(passes[scope]())
        return reports
