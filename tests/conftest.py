"""Pytest configuration and shared fixtures."""

import os

import pytest
from fastapi.testclient import TestClient

from essay_api.config import Settings
from essay_api.main import create_app
from tests.fakes import FakeGateway, make_chunk, make_result


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment() -> None:
    """Set up test environment variables."""
    os.environ.setdefault("ENVIRONMENT", "test")
    os.environ.setdefault("LOG_LEVEL", "INFO")


@pytest.fixture
def settings() -> Settings:
    """Test settings using the packaged prompt templates."""
    return Settings(environment="test", log_format="standard", relay_shutdown_timeout=1.0)


@pytest.fixture
def fake_gateway() -> FakeGateway:
    """Gateway answering with a fixed result and a three-chunk stream."""
    return FakeGateway(
        result=make_result(),
        chunks=[make_chunk(1, "Band"), make_chunk(2, " 7"), make_chunk(3, ".0")],
    )


@pytest.fixture
def app(settings, fake_gateway):
    """FastAPI app wired to the fake gateway."""
    application = create_app(settings)
    application.state.gateway = fake_gateway
    return application


@pytest.fixture
def client(app) -> TestClient:
    """Test client for the app."""
    return TestClient(app)
