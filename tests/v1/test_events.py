# tests/v1/test_events.py
"""Tests for event endpoints and registration."""

from fastapi import status
from sqlalchemy.orm import sessionmaker

from rideclub.models import Event
from rideclub.services.participation import ParticipationService


def test_create_event(client, community, auth_token, event_payload) -> None:
    """Test creating an event as a community member."""
    response = client.post(
        "/api/v1/events/",
        json=event_payload(community.id, max_participants=10, difficulty="Medium"),
        headers=auth_token,
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["max_participants"] == 10
    assert data["current_participants"] == 0
    assert data["participants"] == []
    assert data["difficulty"] == "Medium"


def test_create_event_non_member_forbidden(client, community, other_auth_token, event_payload) -> None:
    """Test that riders outside the community cannot create events in it."""
    response = client.post(
        "/api/v1/events/", json=event_payload(community.id), headers=other_auth_token
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["error"] == "permission_denied"


def test_list_and_get_events(client, ride) -> None:
    """Test listing and fetching events."""
    listing = client.get("/api/v1/events/", params={"community_id": ride.community_id})
    assert listing.status_code == status.HTTP_200_OK
    assert [e["id"] for e in listing.json()["events"]] == [ride.id]

    response = client.get(f"/api/v1/events/{ride.id}")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["title"] == ride.title


def test_get_missing_event(client) -> None:
    """Test fetching an event that does not exist."""
    response = client.get("/api/v1/events/8080")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"detail": "Event not found", "error": "not_found"}


def test_register_and_unregister(client, ride, other_user, other_auth_token) -> None:
    """Test the register, unregister, register again sequence."""
    url = f"/api/v1/events/{ride.id}"

    response = client.post(f"{url}/register", headers=other_auth_token)
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"message": "Successfully registered for the event"}
    event = client.get(url).json()
    assert event["current_participants"] == 1
    assert event["participants"][0]["user"] == other_user.id
    assert [e["id"] for e in client.get(f"/api/v1/users/{other_user.id}/events").json()] == [ride.id]

    response = client.post(f"{url}/unregister", headers=other_auth_token)
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"message": "Successfully unregistered from the event"}
    event = client.get(url).json()
    assert event["participants"] == []
    assert client.get(f"/api/v1/users/{other_user.id}/events").json() == []

    response = client.post(f"{url}/register", headers=other_auth_token)
    assert response.status_code == status.HTTP_200_OK


def test_register_twice_conflict(client, ride, other_auth_token) -> None:
    """Test that a second registration is a conflict."""
    client.post(f"/api/v1/events/{ride.id}/register", headers=other_auth_token)
    response = client.post(f"/api/v1/events/{ride.id}/register", headers=other_auth_token)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json() == {"detail": "Already registered for this event", "error": "conflict"}


def test_register_full_event(client, make_event, auth_token, other_auth_token) -> None:
    """Test that a full event answers with capacity exceeded."""
    event = make_event(max_participants=1)
    client.post(f"/api/v1/events/{event.id}/register", headers=auth_token)

    response = client.post(f"/api/v1/events/{event.id}/register", headers=other_auth_token)

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json() == {"detail": "Event is full", "error": "capacity_exceeded"}


def test_register_concurrent_modification(
    client, engine, db_session, make_event, make_user, other_auth_token
) -> None:
    """Test that a registration racing another writer is a 409 and never overbooks."""
    event = make_event(max_participants=1)
    rival = make_user("Rival")
    assert db_session.get(Event, event.id).registered_ids() == []

    other_session = sessionmaker(bind=engine)()
    try:
        ParticipationService(other_session).register(rival.id, event.id)
    finally:
        other_session.close()

    response = client.post(f"/api/v1/events/{event.id}/register", headers=other_auth_token)

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json() == {
        "detail": "The record was modified concurrently, please retry",
        "error": "concurrent_modification",
    }
    db_session.expire_all()
    assert db_session.get(Event, event.id).current_participants == 1


def test_register_inactive_event(client, ride, auth_token, other_auth_token) -> None:
    """Test that deactivated events refuse registrations."""
    response = client.put(
        f"/api/v1/events/{ride.id}", json={"is_active": False}, headers=auth_token
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["is_active"] is False

    response = client.post(f"/api/v1/events/{ride.id}/register", headers=other_auth_token)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "invalid_operation"


def test_delete_event(client, ride, auth_token, other_user, other_auth_token) -> None:
    """Test that deleting an event releases every registration."""
    client.post(f"/api/v1/events/{ride.id}/register", headers=other_auth_token)

    response = client.delete(f"/api/v1/events/{ride.id}", headers=other_auth_token)
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = client.delete(f"/api/v1/events/{ride.id}", headers=auth_token)
    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert client.get(f"/api/v1/events/{ride.id}").status_code == status.HTTP_404_NOT_FOUND
    assert client.get(f"/api/v1/users/{other_user.id}").json()["registered_events"] == []
