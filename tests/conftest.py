import math
import os

import pytest

# the module-level app must not need a database
os.environ.setdefault("STORE_BACKEND", "memory")

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from listings_api.config import Settings
from listings_api.main import create_app
from listings_api.repository.memory import EARTH_RADIUS_M, InMemoryListingStore

ADMIN_KEY = "test-admin-key"

NAIROBI = (-1.2921, 36.8219)


def north_of(lat: float, lng: float, meters: float):
    """(lat, lng) moved `meters` due north along the meridian."""
    return lat + math.degrees(meters / EARTH_RADIUS_M), lng


def seed_listing(store, lat, lng, **fields):
    values = {
        "host_id": 1,
        "title": "Listing",
        "description": None,
        "price_kes": 1000,
        "latitude": lat,
        "longitude": lng,
        "location_name": None,
    }
    values.update(fields)
    return store.create(values)


class FailingStore:
    """Every call fails the way a dropped database connection does."""

    def _fail(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    nearby = get_by_id = images = create = _fail


class NoAccessStore:
    """Fails the test if the handler touches the store at all."""

    def _fail(self, *args, **kwargs):
        raise AssertionError("store must not be accessed")

    nearby = get_by_id = images = create = _fail


@pytest.fixture
def store():
    s = InMemoryListingStore()
    s.add_user(1, "Amina Otieno", phone="+254700000001", whatsapp="+254700000001")
    s.add_user(2, "Brian Kamau", phone="+254700000002", whatsapp=None)
    return s


@pytest.fixture
def app(store):
    app = create_app(Settings(store_backend="memory", admin_key=ADMIN_KEY))
    app.state.store = store
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def admin_headers():
    return {"x-admin-key": ADMIN_KEY}
