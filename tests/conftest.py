"""Pytest configuration and common fixtures."""

import os
import sys
import time
import warnings
from pathlib import Path
from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock

from dotenv import load_dotenv

# Try to load test-specific environment file if it exists
test_env_file = Path(__file__).parent / ".env.test"
if test_env_file.exists():
    load_dotenv(test_env_file)

os.environ.setdefault("ENV", "testing")

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import jwt
import pytest

from autobook.core.config.booking_config import ConfigStore
from autobook.core.config.settings import AutobookSettings, reset_settings
from autobook.services.api.models import TransportResponse

BOOKING_URL_BASE = "https://courts.example/booking/"


def pytest_configure(config):
    """Configure pytest environment before tests run."""
    warnings.filterwarnings("ignore", message="coroutine.*was never awaited")


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch, tmp_path):
    """Automatically set up test environment for all tests."""
    monkeypatch.setenv("ENV", "testing")
    monkeypatch.setenv("CONFIG_PATH", str(tmp_path / "config.json"))
    monkeypatch.setenv("LOGS_DIR", str(tmp_path / "logs"))

    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings(tmp_path) -> AutobookSettings:
    """Settings tuned for fast tests (short poll interval, no backoff or delays, no rate limit)."""
    return AutobookSettings(
        env="testing",
        config_path=str(tmp_path / "config.json"),
        logs_dir=str(tmp_path / "logs"),
        status_poll_interval=0.01,
        proxy_initial_backoff=0.0,
        header_variant_delay=0.0,
        booking_url_base=BOOKING_URL_BASE,
        rate_limit_enabled=False,
    )


@pytest.fixture
def config_store(settings) -> ConfigStore:
    """Config store backed by a temporary file, without a token."""
    return ConfigStore(settings.config_path)


def _make_token(expires_in: int = 3600, **claims: Any) -> str:
    payload: Dict[str, Any] = {"sub": "member-1", "exp": int(time.time()) + expires_in}
    payload.update(claims)
    return jwt.encode(payload, "test-secret", algorithm="HS256")


@pytest.fixture
def make_token():
    """Factory building an HS256 JWT with an ``exp`` claim relative to now."""
    return _make_token


@pytest.fixture
def token() -> str:
    """A valid, unexpired upstream token."""
    return _make_token()


@pytest.fixture
def token_store(config_store, token) -> ConfigStore:
    """Config store holding a valid token."""
    config_store.update({"token": token})
    return config_store


def _slot(inventory_id: Any, start: str, **extra: Any) -> Dict[str, Any]:
    record: Dict[str, Any] = {"inventoryItemId": inventory_id, "start": start}
    record.update(extra)
    return record


@pytest.fixture
def make_slot():
    """Factory building a raw slot record the way the search endpoint returns it."""
    return _slot


class FakeTransport:
    """In-memory upstream transport usable as an async context manager."""

    def __init__(self):
        self.search_availability = AsyncMock(return_value={"slots": []})
        self.submit_booking = AsyncMock(
            return_value=TransportResponse(status=201, body={"guid": "guid-1"})
        )
        self.get_booking_status = AsyncMock(return_value={"status": "Confirmed"})
        self.request = AsyncMock(return_value=TransportResponse(status=200, body={"slots": []}))
        self.entered = 0

    async def __aenter__(self):
        self.entered += 1
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None


@pytest.fixture
def fake_transport() -> FakeTransport:
    """Fake transport with an empty search result and successful submissions."""
    return FakeTransport()


@pytest.fixture
def transport_factory(fake_transport) -> MagicMock:
    """Transport factory always returning the fake transport."""
    return MagicMock(return_value=fake_transport)
