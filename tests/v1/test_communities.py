# tests/v1/test_communities.py
"""Tests for community-related endpoints."""

from fastapi import status


def test_list_communities(client, community) -> None:
    """Test listing public communities."""
    response = client.get("/api/v1/communities/")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["total"] == 1
    assert data["current_page"] == 1
    assert data["communities"][0]["id"] == community.id
    assert data["communities"][0]["member_count"] == 1


def test_list_communities_filters_by_city(client, community) -> None:
    """Test that the city filter excludes other cities."""
    response = client.get("/api/v1/communities/", params={"city": "Chennai"})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["communities"] == []


def test_get_community(client, community) -> None:
    """Test getting a specific community."""
    response = client.get(f"/api/v1/communities/{community.id}")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["name"] == "Pune Thumpers"
    assert [m["user"] for m in data["members"]] == [community.admin_id]


def test_get_nonexistent_community(client) -> None:
    """Test getting a non-existent community."""
    response = client.get("/api/v1/communities/99999")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"detail": "Community not found", "error": "not_found"}


def test_create_community(client, test_user, auth_token, community_payload) -> None:
    """Test creating a new community makes the caller admin and member."""
    response = client.post(
        "/api/v1/communities/",
        json=community_payload(name="Deccan Riders"),
        headers=auth_token,
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["admin_id"] == test_user.id
    assert data["member_count"] == 1

    me = client.get("/api/v1/users/me", headers=auth_token).json()
    assert me["joined_communities"] == [data["id"]]


def test_create_community_requires_auth(client, community_payload) -> None:
    """Test that anonymous callers cannot create communities."""
    response = client.post("/api/v1/communities/", json=community_payload())
    assert response.status_code in {status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN}


def test_create_community_validation(client, auth_token, community_payload) -> None:
    """Test that short descriptions are rejected."""
    response = client.post(
        "/api/v1/communities/",
        json=community_payload(description="Too short"),
        headers=auth_token,
    )
    assert response.status_code == 422


def test_create_duplicate_community(client, community, other_auth_token, community_payload) -> None:
    """Test creating a community with a name already used in the city."""
    response = client.post(
        "/api/v1/communities/",
        json=community_payload(),
        headers=other_auth_token,
    )
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["error"] == "conflict"


def test_join_and_leave(client, community, other_user, other_auth_token) -> None:
    """Test that join and leave are reflected on the community and the profile."""
    response = client.post(f"/api/v1/communities/{community.id}/join", headers=other_auth_token)
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"message": "Successfully joined the community"}

    members = client.get(f"/api/v1/communities/{community.id}/members").json()
    assert [m["id"] for m in members] == [community.admin_id, other_user.id]
    mine = client.get(f"/api/v1/users/{other_user.id}/communities").json()
    assert [c["id"] for c in mine] == [community.id]

    response = client.post(f"/api/v1/communities/{community.id}/leave", headers=other_auth_token)
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"message": "Successfully left the community"}
    assert client.get(f"/api/v1/users/{other_user.id}/communities").json() == []


def test_join_twice_conflict(client, community, other_auth_token) -> None:
    """Test that joining twice returns a conflict."""
    client.post(f"/api/v1/communities/{community.id}/join", headers=other_auth_token)
    response = client.post(f"/api/v1/communities/{community.id}/join", headers=other_auth_token)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json() == {
        "detail": "Already a member of this community",
        "error": "conflict",
    }


def test_join_missing_community(client, other_auth_token) -> None:
    """Test joining a community that does not exist."""
    response = client.post("/api/v1/communities/4242/join", headers=other_auth_token)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_admin_cannot_leave(client, community, auth_token) -> None:
    """Test that the admin is refused when leaving."""
    response = client.post(f"/api/v1/communities/{community.id}/leave", headers=auth_token)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "invalid_operation"


def test_update_community_admin_only(client, community, auth_token, other_auth_token) -> None:
    """Test that only the admin can edit a community."""
    changes = {"description": "Now also covering the Konkan coast on long weekends."}
    response = client.put(
        f"/api/v1/communities/{community.id}", json=changes, headers=other_auth_token
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = client.put(f"/api/v1/communities/{community.id}", json=changes, headers=auth_token)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["description"] == changes["description"]
