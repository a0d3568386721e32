# tests/conftest.py
"""Shared fixtures: in-memory SQLite database, API client, users per role."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import dealership.models  # noqa
from dealership.database import Base, get_db
from dealership.main import app
from dealership.services.auth_service import Principal
from dealership.services.user_service import create_user

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    """Create a user with the given role; returns (user, api_key)."""
    def _make(role="Admin", email=None):
        return create_user(db, f"{role} User", email or f"{role.lower()}@example.com", role)
    return _make


@pytest.fixture
def admin(make_user):
    return make_user("Admin")


@pytest.fixture
def auth(admin):
    _, api_key = admin
    return {"X-API-Key": api_key}


@pytest.fixture
def principal(admin):
    user, _ = admin
    return Principal(id=user.id, name=user.name, email=user.email, role=user.role,
                     ip="127.0.0.1", user_agent="pytest")


# ── Payload builders ─────────────────────────────────────────────────────────

def vehicle_payload(registration="CAB-1234", **overrides):
    payload = {
        "registration_number": registration,
        "make": "Toyota",
        "vehicle_model": "Corolla",
        "year": 2018,
        "transmission": "Automatic",
        "fuel_type": "Petrol",
        "tags": ["family", "sedan"],
    }
    payload.update(overrides)
    return payload


def person_payload(**overrides):
    payload = {
        "type": "Individual",
        "full_name": "Nimal Perera",
        "phone": ["0771234567"],
    }
    payload.update(overrides)
    return payload


def transaction_payload(vehicle_id, counterparty_id, direction="IN", price=1_000_000,
                        date="2025-01-10T10:00:00", **overrides):
    payload = {
        "vehicle_id": vehicle_id,
        "direction": direction,
        "counterparty_id": counterparty_id,
        "date": date,
        "base_price": price,
    }
    payload.update(overrides)
    return payload
