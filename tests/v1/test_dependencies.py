# tests/v1/test_dependencies.py
"""Tests for the bearer-token dependency."""

from datetime import UTC, datetime, timedelta

from fastapi import status
from jose import jwt

from rideclub.core.security import create_access_token
from rideclub.core.settings import settings


def test_valid_token_resolves_user(client, test_user, auth_token) -> None:
    """Test that a valid token identifies the caller."""
    response = client.get("/api/v1/users/me", headers=auth_token)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["id"] == test_user.id


def test_garbage_token_is_rejected(client) -> None:
    """Test that an undecodable token is a 401."""
    response = client.get("/api/v1/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"] == "Could not validate credentials"


def test_expired_token_is_rejected(client, test_user) -> None:
    """Test that an expired token is a 401."""
    token = jwt.encode(
        {"sub": str(test_user.id), "exp": datetime.now(UTC) - timedelta(minutes=1)},
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    response = client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_non_numeric_subject_is_rejected(client) -> None:
    """Test that a subject which is not a user id is a 401."""
    token = jwt.encode(
        {"sub": "someone", "exp": datetime.now(UTC) + timedelta(minutes=5)},
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    response = client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_token_for_deleted_user_is_rejected(client) -> None:
    """Test that a token for an unknown user id is a 401."""
    response = client.get(
        "/api/v1/users/me",
        headers={"Authorization": f"Bearer {create_access_token(987654)}"},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"] == "User not found"
