import pytest
from fastapi.testclient import TestClient

from location_relay.main import app
from location_relay.store import LocationStore


@pytest.fixture
def store():
    fresh = LocationStore()
    app.state.store = fresh
    return fresh


@pytest.fixture
def client(store):
    return TestClient(app)
