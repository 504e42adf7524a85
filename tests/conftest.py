from __future__ import annotations

import os
import sys
from contextlib import contextmanager
from pathlib import Path

# Settings are read at import time: configure before any project import.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR))

import pytest
from fastapi.testclient import TestClient

from config.database import Base, SessionLocal, engine
from main import app
from modules.auth.service import auth_service, Identity
from modules.user.models import UserRole


@pytest.fixture(autouse=True)
def _fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@contextmanager
def session_scope():
    """Short-lived committed session. The in-memory DB has one shared connection,
    so never keep one open across HTTP calls."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@pytest.fixture
def db():
    """Session for service-level tests (no HTTP client in the same test)."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def make_user(email: str, role: UserRole = UserRole.CLIENT, password: str = "secret123", name: str = "Test User"):
    """Create a user directly; returns (token, user_id)."""
    with session_scope() as s:
        token, user = auth_service.register(s, email, password, name, role=role)
        user_id = user.id
    return token, user_id


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_token():
    token, _ = make_user("admin@example.com", UserRole.ADMIN, name="Admin")
    return token


@pytest.fixture
def client_token():
    token, _ = make_user("client@example.com", UserRole.CLIENT, name="Client")
    return token


@pytest.fixture
def admin_identity(db):
    _, user = auth_service.register(db, "svc-admin@example.com", "secret123", "Admin", role=UserRole.ADMIN)
    return Identity(subject_id=user.id, role=UserRole.ADMIN)


@pytest.fixture
def client_identity(db):
    _, user = auth_service.register(db, "svc-client@example.com", "secret123", "Client")
    return Identity(subject_id=user.id, role=UserRole.CLIENT)


# ==========================================
# Sample payloads
# ==========================================

FLIGHT = {
    "name": "Vuelo Buenos Aires - Madrid",
    "description": "Direct flight",
    "price": 1200,
    "kind": "FLIGHT",
    "details": {
        "origin": "Buenos Aires",
        "destination": "Madrid",
        "departure": "22:00",
        "arrival": "14:30",
        "duration": "11h 30m",
        "airline": "Iberia",
        "flight_number": "IB6845",
    },
}

HOTEL = {
    "name": "Hotel Eiffel Paris",
    "description": "Boutique hotel",
    "price": 200,
    "kind": "HOTEL",
    "details": {
        "location": "Paris, France",
        "amenities": ["WiFi", "Bar"],
        "rating": 4.6,
        "stars": 4,
    },
}

TRANSPORT = {
    "name": "Traslado Aeropuerto Madrid",
    "price": 45,
    "kind": "TRANSPORT",
    "details": {"vehicle_type": "Sedan", "capacity": 4},
}

EXCURSION = {
    "name": "Tour Flamenco Madrid",
    "price": 75,
    "kind": "EXCURSION",
    "details": {"location": "Madrid, Spain", "max_group_size": 20},
}


def create_product(client, token, payload=None) -> dict:
    r = client.post("/products", json=payload or FLIGHT, headers=auth(token))
    assert r.status_code == 201, r.text
    return r.json()
