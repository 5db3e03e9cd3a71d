"""
Shared fixtures: a throwaway database, the mock generator and an
authenticated TestClient wired to both.
"""

import pytest
from fastapi.testclient import TestClient

from saveyourgoblin.api.deps import get_db, get_generator
from saveyourgoblin.db.manager import DatabaseManager
from saveyourgoblin.engine.generator import ContentGenerator
from saveyourgoblin.main import app

TEST_TOKEN = "test-token"


@pytest.fixture
def db(tmp_path):
    manager = DatabaseManager(str(tmp_path / "test.db"))
    manager.ensure_user(TEST_TOKEN, "Test GM")
    return manager


@pytest.fixture
def user(db):
    return db.get_user_by_token(TEST_TOKEN)


@pytest.fixture
def generator():
    return ContentGenerator(use_mock=True)


@pytest.fixture
def api(db, generator):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_generator] = lambda: generator
    client = TestClient(app, headers={"Authorization": f"Bearer {TEST_TOKEN}"})
    yield client
    app.dependency_overrides.clear()
