import pytest
from fastapi.testclient import TestClient

from nim_proxy.config import Settings
from nim_proxy.main import create_app


@pytest.fixture
def make_client():
    def _make(**overrides):
        settings = Settings(api_key="test-key", **overrides)
        return TestClient(create_app(settings))
    return _make


@pytest.fixture
def client(make_client):
    return make_client()
