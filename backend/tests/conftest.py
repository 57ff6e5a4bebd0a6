# backend/tests/conftest.py

from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from dotenv import load_dotenv
from fastapi.testclient import TestClient

# Load the test environment before anything imports the settings module.
load_dotenv(dotenv_path=Path(__file__).resolve().parent.parent / ".env.test", override=True)

from search_gateway.main import app  # noqa: E402


class FakeStore:
    """In-memory stand-in for the Redis mapping store."""

    def __init__(self):
        self.data = {}
        self.writes = 0

    async def get_json(self, key):
        return self.data.get(key)

    async def set_json(self, key, value, ttl=300):
        self.writes += 1
        self.data[key] = value


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture(scope="function")
def test_client(mocker):
    """
    TestClient for API tests. Shutdown must not close the shared HTTP pool
    or the Redis pool, since other tests in the run still import them.
    """
    mocker.patch("search_gateway.utils.lifecycle.http_client.aclose", new_callable=AsyncMock)
    mocker.patch("search_gateway.utils.lifecycle.cache_service.close", new_callable=AsyncMock)

    with TestClient(app) as client:
        yield client
