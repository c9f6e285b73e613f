"""
Pytest fixtures for seating backend tests.

Provides test database setup, cache fixtures, and test client.
"""

import copy

import pytest
from seating import create_app
from seating.extensions import db
from seating.services.cache_service import MemoryCache
from seating.services.chart_service import ChartService


FLOOR3_PAYLOAD = {
    "department": "Eng",
    "name": "Floor3",
    "layout": {
        "width": 800,
        "height": 600,
        "seats": [
            {
                "id": "s1",
                "x": 0,
                "y": 0,
                "width": 60,
                "height": 40,
                "type": "desk",
                "color": "#fff",
                "status": "available",
            },
        ],
    },
    "metadata": {"createdBy": "admin", "updatedBy": "admin"},
}


class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SEATING_CACHE_BACKEND': 'memory',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app, db_session):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database (and empty app cache) for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        app.extensions["seating_cache"].clear()

        yield db.session

        # Cleanup after test
        db.session.rollback()
        db.session.remove()


@pytest.fixture(scope='function')
def cache():
    return MemoryCache()


@pytest.fixture(scope='function')
def service(db_session, cache):
    return ChartService(cache=cache)


@pytest.fixture(scope='function')
def make_payload():
    """Factory for a valid chart payload; keyword args override top-level keys."""
    def _make(**overrides):
        payload = copy.deepcopy(FLOOR3_PAYLOAD)
        payload.update(overrides)
        return payload
    return _make


@pytest.fixture(scope='function')
def two_seat_payload(make_payload):
    payload = make_payload(description="Third floor, east wing")
    payload["layout"]["seats"].append({
        "id": "s2",
        "x": 100,
        "y": 0,
        "width": 60,
        "height": 40,
        "type": "desk",
        "color": "#ccc",
        "label": "Window",
        "rotation": 90,
        "status": "reserved",
    })
    return payload


@pytest.fixture(scope='function')
def clock():
    return FakeClock()
