# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import timedelta
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-rideclub")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from rideclub.core.security import create_access_token
from rideclub.db.session import Base
from rideclub.db.session import get_db as app_get_session
from rideclub.db.time import utcnow
from rideclub.main import app as fastapi_app
from rideclub.models import Community, Event, User
from rideclub.schemas.community import CommunityCreate
from rideclub.schemas.event import EventCreate
from rideclub.services.membership import MembershipService
from rideclub.services.participation import ParticipationService

TEST_DB_URL = "sqlite://"

_EMAIL_COUNTER = count(1)


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    # A fresh in-memory database per test; services and the reconciler commit
    # and roll back freely, so a wrapping savepoint would not isolate them.
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory that persists riders with empty relationship lists."""

    def _make(name: str = "Rider", **overrides: Any) -> User:
        user = User(
            email=overrides.pop("email", f"rider{next(_EMAIL_COUNTER)}@example.com"),
            name=name,
            city=overrides.pop("city", "Pune"),
            bike_type=overrides.pop("bike_type", "Royal Enfield"),
            bio=overrides.pop("bio", ""),
            joined_communities=overrides.pop("joined_communities", []),
            registered_events=overrides.pop("registered_events", []),
            followers=overrides.pop("followers", []),
            following=overrides.pop("following", []),
            **overrides,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture()
def test_user(make_user: Callable[..., User]) -> User:
    """Create and return a persisted test user."""
    return make_user("Test User")


@pytest.fixture()
def other_user(make_user: Callable[..., User]) -> User:
    """Create and return a second persisted user."""
    return make_user("Other User")


@pytest.fixture()
def auth_token(test_user: User) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    token = create_access_token(test_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    token = create_access_token(other_user.id)
    return {"Authorization": f"Bearer {token}"}


def _community_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "name": "Pune Thumpers",
        "description": "Weekend rides around the Sahyadri ghats for every rider.",
        "city": "Pune",
        "bike_type": "Royal Enfield",
        "rules": ["Helmets on, always"],
        "tags": ["weekend", "ghats"],
    }
    payload.update(overrides)
    return payload


def _event_payload(community_id: int, **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "title": "Sunrise ride to Lavasa",
        "description": "An easy paced morning ride with a breakfast stop at the lake.",
        "community_id": community_id,
        "event_date": (utcnow() + timedelta(days=7)).isoformat(),
        "start_time": "06:00",
        "end_time": "11:00",
        "location_name": "Chandni Chowk",
        "location_address": "Chandni Chowk, Kothrud, Pune",
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def community_payload() -> Callable[..., dict[str, Any]]:
    """Return a builder for valid community creation payloads."""
    return _community_payload


@pytest.fixture()
def event_payload() -> Callable[..., dict[str, Any]]:
    """Return a builder for valid event creation payloads."""
    return _event_payload


@pytest.fixture()
def community(db_session: Session, test_user: User) -> Community:
    """Create a community administered by ``test_user``."""
    return MembershipService(db_session).create(
        test_user.id, CommunityCreate(**_community_payload())
    )


@pytest.fixture()
def make_event(db_session: Session, community: Community, test_user: User) -> Callable[..., Event]:
    """Return a factory for events organised by ``test_user`` in ``community``."""

    def _make(**overrides: Any) -> Event:
        data = EventCreate(**_event_payload(community.id, **overrides))
        return ParticipationService(db_session).create(test_user.id, data)

    return _make


@pytest.fixture()
def ride(make_event: Callable[..., Event]) -> Event:
    """Create a default event with room for three riders."""
    return make_event(max_participants=3)
