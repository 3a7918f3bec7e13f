import os

# Must be set before llm_chat_kit.db.session is imported
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
import requests
from fastapi.testclient import TestClient

from llm_chat_kit.app import create_app
from llm_chat_kit.providers import ProviderName, ProviderRegistry

from fakes import FakeFactory


@pytest.fixture
def no_network(monkeypatch):
    """Fail the test if anything tries to reach the network through requests."""

    def _blocked(*args, **kwargs):
        raise AssertionError(f"unexpected network call: {args} {kwargs}")

    monkeypatch.setattr(requests, "get", _blocked)
    monkeypatch.setattr(requests, "post", _blocked)
    monkeypatch.setattr(requests, "request", _blocked)


@pytest.fixture
def registry():
    return ProviderRegistry.load(env={})


@pytest.fixture
def fake_factory():
    return FakeFactory()


@pytest.fixture
def fake_registry(fake_factory):
    """Registry whose providers all stream from a FakeLLMClient."""
    factories = {name: fake_factory for name in ProviderName}
    return ProviderRegistry.load(env={}, factories=factories)


@pytest.fixture
def make_client():
    def _make(registry, env):
        return TestClient(create_app(registry, env=env))

    return _make
