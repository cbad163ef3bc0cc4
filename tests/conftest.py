from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from database import InMemoryDatabase
from main import app, get_db
from seed import seed_database

SEED_NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def db():
    database = InMemoryDatabase()
    seed_database(database, now=SEED_NOW)
    return database


@pytest.fixture
def empty_db():
    return InMemoryDatabase()


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()
