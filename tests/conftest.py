"""Pytest configuration and fixtures."""

import os
import secrets
from datetime import datetime, timezone

import pytest

# Generate a unique test secret for this test run to prevent token forgery
_TEST_JWT_SECRET = f"test-only-{secrets.token_urlsafe(32)}"

os.environ.setdefault("JWT_SECRET_KEY", _TEST_JWT_SECRET)
os.environ.setdefault("RECORD_STORE", "memory")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from fastapi.testclient import TestClient  # noqa: E402

from kuvaajat.auth import CUSTOMER, PHOTOGRAPHER, Identity, create_access_token  # noqa: E402
from kuvaajat.config import get_settings  # noqa: E402
from kuvaajat.database import InMemoryRecordStore  # noqa: E402
from kuvaajat.main import create_app  # noqa: E402

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def fixed_now() -> datetime:
    return NOW


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def store():
    """Fresh in-memory record store."""
    return InMemoryRecordStore()


@pytest.fixture
def client(store):
    """Create a test client over an app bound to the test store."""
    return TestClient(create_app(store=store))


@pytest.fixture
def customer():
    return Identity("usr_customer_1", CUSTOMER)


@pytest.fixture
def other_customer():
    return Identity("usr_customer_2", CUSTOMER)


@pytest.fixture
def photographer():
    return Identity("usr_photographer_1", PHOTOGRAPHER)


@pytest.fixture
def auth_headers(settings):
    """Build auth headers for a (subject, role) pair."""

    def _headers(subject_id: str, role: str) -> dict:
        token = create_access_token(subject_id, role, settings, name=f"Test {subject_id}")
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def customer_headers(auth_headers, customer):
    return auth_headers(customer.subject_id, CUSTOMER)


@pytest.fixture
def other_customer_headers(auth_headers, other_customer):
    return auth_headers(other_customer.subject_id, CUSTOMER)


@pytest.fixture
def photographer_headers(auth_headers, photographer):
    return auth_headers(photographer.subject_id, PHOTOGRAPHER)


@pytest.fixture
def job_payload():
    """A valid job request body; pass overrides to change fields."""

    def _payload(**overrides) -> dict:
        payload = {
            "title": "Wedding highlight video",
            "description": "Ceremony and reception, about 6 hours on site.",
            "services": ["valokuvat", "videokuvaus"],
            "city": "Tampere",
            "area": "Kaleva",
            "radius": 30,
            "duration": "6h",
            "difficulty": "keskitaso",
            "budgetUnknown": False,
            "budgetMin": 500,
            "budgetMax": 1200,
            "date": "2027-06-12",
            "photoDetails": {"edited_photos": 150},
            "videoDetails": {"length_minutes": 5},
            "droneDetails": {"altitude": 100},
        }
        payload.update(overrides)
        return payload

    return _payload
