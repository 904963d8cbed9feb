"""
RegFree Bridge - Test Configuration and Fixtures

Shared fixtures for all test modules.
"""

import os
import sys
from typing import Callable, Generator, List

import httpx
import pytest
from fastapi.testclient import TestClient

# Ensure backend package is importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.config import Settings
from app.core.device_store import InMemoryDeviceStore
from app.core.dispatch import NotificationDispatcher
from app.core.registration import RegistrationService
from app.core.types import PushOptions
from app.services.push import DummyPushProvider
from app.telephony.client import TelephonyClient


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external dependencies")


# =============================================================================
# Settings Fixtures
# =============================================================================

@pytest.fixture
def test_settings() -> Settings:
    """Create test settings with safe defaults."""
    return Settings(
        app_env="testing",
        app_debug=True,
        app_log_level="WARNING",  # Reduce noise in tests
        push_backend="dummy",
        push_ttl_seconds=30,
        telephony_api_host="telephony.test",
        telephony_domain="example.test",
        telephony_api_key="test-key",
        expose_device_list=True,
    )


# =============================================================================
# Store and Service Fixtures
# =============================================================================

@pytest.fixture
def store() -> InMemoryDeviceStore:
    """Create a fresh, empty device store."""
    return InMemoryDeviceStore()


@pytest.fixture
def push() -> DummyPushProvider:
    """Create a dummy push provider that records messages."""
    return DummyPushProvider()


@pytest.fixture
def dispatcher(store: InMemoryDeviceStore, push: DummyPushProvider) -> NotificationDispatcher:
    return NotificationDispatcher(store, push, PushOptions(priority="high", time_to_live=30))


# =============================================================================
# Telephony Fixtures
# =============================================================================

@pytest.fixture
def telephony_requests() -> List[httpx.Request]:
    """Requests captured by the mocked telephony API."""
    return []


@pytest.fixture
def telephony_handler(telephony_requests: List[httpx.Request]) -> Callable[[httpx.Request], httpx.Response]:
    """
    Default telephony API behaviour: issue a session token.

    Tests can override this fixture to simulate failures.
    """
    def handler(request: httpx.Request) -> httpx.Response:
        telephony_requests.append(request)
        return httpx.Response(201, json={"token": "sess-outbound-1"})

    return handler


@pytest.fixture
def telephony_client(telephony_handler) -> TelephonyClient:
    """Telephony client backed by an in-process mock transport."""
    return TelephonyClient(
        api_host="telephony.test",
        domain="example.test",
        api_key="test-key",
        timeout=2.0,
        transport=httpx.MockTransport(telephony_handler),
    )


@pytest.fixture
def registration(store: InMemoryDeviceStore, telephony_client: TelephonyClient) -> RegistrationService:
    return RegistrationService(store, telephony_client)


# =============================================================================
# FastAPI App Fixture
# =============================================================================

@pytest.fixture
def app(test_settings: Settings, push: DummyPushProvider, telephony_client: TelephonyClient):
    """Create a FastAPI app instance wired to the dummy collaborators."""
    # Import here to avoid circular imports
    from main import create_app

    return create_app(
        settings=test_settings,
        push_provider=push,
        telephony_client=telephony_client,
    )


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    with TestClient(app) as c:
        yield c
