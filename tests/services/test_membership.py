# tests/services/test_membership.py
"""Tests for community membership writes on both sides of the relationship."""

import pytest

from rideclub.core.errors import (
    ConflictError,
    InvalidOperationError,
    NotFoundError,
    PermissionDeniedError,
)
from rideclub.models import User
from rideclub.schemas.community import CommunityCreate, CommunityUpdate
from rideclub.services.membership import MembershipService


def _assert_symmetric(db_session, community) -> None:
    db_session.expire_all()
    for user_id in community.member_ids():
        assert community.id in db_session.get(User, user_id).joined_communities
    assert community.member_count == len(community.members)


def test_create_makes_admin_first_member(db_session, community, test_user) -> None:
    """The creator is stored as admin, first member and on their own profile."""
    db_session.refresh(test_user)
    assert community.admin_id == test_user.id
    assert community.member_ids() == [test_user.id]
    assert community.member_count == 1
    assert test_user.joined_communities == [community.id]


def test_join_writes_both_sides(db_session, community, other_user) -> None:
    """Joining lists the user on the community and the community on the user."""
    service = MembershipService(db_session)

    message = service.join(other_user.id, community.id)

    assert message == "Successfully joined the community"
    db_session.refresh(community)
    db_session.refresh(other_user)
    assert community.member_ids() == [community.admin_id, other_user.id]
    assert community.member_count == 2
    assert other_user.joined_communities == [community.id]
    entry = community.members[-1]
    assert entry["user"] == other_user.id
    assert entry["joined_at"]
    _assert_symmetric(db_session, community)


def test_join_twice_is_conflict_and_changes_nothing(db_session, community, other_user) -> None:
    """A second join is rejected and neither side gains a duplicate."""
    service = MembershipService(db_session)
    service.join(other_user.id, community.id)

    with pytest.raises(ConflictError) as excinfo:
        service.join(other_user.id, community.id)

    assert excinfo.value.message == "Already a member of this community"
    db_session.rollback()
    db_session.refresh(community)
    db_session.refresh(other_user)
    assert community.member_ids().count(other_user.id) == 1
    assert other_user.joined_communities == [community.id]


def test_join_unknown_community_is_not_found(db_session, other_user) -> None:
    """Joining a community id that does not exist raises NotFoundError."""
    with pytest.raises(NotFoundError):
        MembershipService(db_session).join(other_user.id, 424242)


def test_join_unknown_user_is_not_found(db_session, community) -> None:
    """A missing user leaves the community untouched."""
    with pytest.raises(NotFoundError):
        MembershipService(db_session).join(424242, community.id)
    db_session.rollback()
    db_session.refresh(community)
    assert community.member_ids() == [community.admin_id]


def test_scenario_join_then_leave_restores_empty_state(db_session, community, other_user) -> None:
    """Join followed by leave leaves both sides as they started."""
    service = MembershipService(db_session)
    service.join(other_user.id, community.id)

    message = service.leave(other_user.id, community.id)

    assert message == "Successfully left the community"
    db_session.refresh(community)
    db_session.refresh(other_user)
    assert other_user.id not in community.member_ids()
    assert community.member_count == 1
    assert other_user.joined_communities == []


def test_leave_when_not_a_member_is_a_noop(db_session, community, other_user) -> None:
    """Leaving a community one never joined succeeds without changes."""
    message = MembershipService(db_session).leave(other_user.id, community.id)

    assert message == "Successfully left the community"
    db_session.refresh(community)
    assert community.member_ids() == [community.admin_id]
    assert community.member_count == 1


def test_admin_cannot_leave(db_session, community, test_user) -> None:
    """The admin must transfer rights before leaving."""
    with pytest.raises(InvalidOperationError):
        MembershipService(db_session).leave(test_user.id, community.id)
    db_session.rollback()
    db_session.refresh(community)
    assert community.has_member(test_user.id)


def test_leave_matches_member_by_identity(db_session, community, make_user) -> None:
    """Leaving removes only the departing user, wherever they sit in the list."""
    service = MembershipService(db_session)
    riders = [make_user(f"Rider {i}") for i in range(3)]
    for rider in riders:
        service.join(rider.id, community.id)

    service.leave(riders[1].id, community.id)

    db_session.refresh(community)
    assert community.member_ids() == [community.admin_id, riders[0].id, riders[2].id]
    _assert_symmetric(db_session, community)


def test_duplicate_name_in_city_is_conflict(db_session, community, other_user, community_payload) -> None:
    """Community names are unique per city, ignoring case."""
    data = CommunityCreate(**community_payload(name="pune thumpers"))
    with pytest.raises(ConflictError):
        MembershipService(db_session).create(other_user.id, data)


def test_same_name_in_other_city_is_allowed(db_session, community, other_user, community_payload) -> None:
    """The same name may be reused in another city."""
    data = CommunityCreate(**community_payload(city="Mumbai"))
    created = MembershipService(db_session).create(other_user.id, data)
    assert created.id != community.id
    assert created.city == "Mumbai"


def test_update_requires_admin(db_session, community, other_user) -> None:
    """Only the admin may edit community details."""
    with pytest.raises(PermissionDeniedError):
        MembershipService(db_session).update(
            other_user.id, community.id, CommunityUpdate(description="x" * 30)
        )


def test_list_public_orders_by_member_count(db_session, community, make_user, community_payload) -> None:
    """Bigger communities come first in the public listing."""
    service = MembershipService(db_session)
    founder = make_user("Founder")
    smaller = service.create(founder.id, CommunityCreate(**community_payload(name="Tiny Crew")))
    service.join(make_user("Joiner").id, community.id)

    listing = service.list_public()

    assert [c.id for c in listing.communities] == [community.id, smaller.id]
    assert listing.total == 2
    assert listing.total_pages == 1
