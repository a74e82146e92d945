"""
Shared pytest fixtures and configuration for the TempShare backend test suite.

This module provides:
- Hypothesis configuration for property-based testing
- A controllable clock for expiry and idle tests
- In-memory registry, token map and blob store fixtures
- Markers assigned by test location
"""

from datetime import timedelta
from unittest.mock import Mock

import pytest

# Hypothesis configuration
from hypothesis import HealthCheck, Phase, settings

from tempshare.domain.file_storage import FileManager
from tempshare.infrastructure.in_memory_file_registry import InMemoryFileRegistry
from tempshare.infrastructure.in_memory_token_repository import InMemoryTokenRepository
from tests.fixtures import FakeClock, InMemoryBlobStore

# Register Hypothesis profiles
settings.register_profile(
    "default",
    max_examples=100,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.target, Phase.shrink],
)
settings.register_profile(
    "ci",
    max_examples=200,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)
settings.register_profile(
    "dev",
    max_examples=10,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)
settings.load_profile("default")


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    """Provide a fake clock starting at 2024-01-01 12:00 UTC."""
    return FakeClock()


@pytest.fixture
def registry(clock) -> InMemoryFileRegistry:
    """Provide an in-memory registry driven by the fake clock."""
    return InMemoryFileRegistry(stripes=4, clock=clock)


@pytest.fixture
def token_repository() -> InMemoryTokenRepository:
    return InMemoryTokenRepository(stripes=4)


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def event_publisher() -> Mock:
    """Provide a mock event publisher recording published events."""
    return Mock()


@pytest.fixture
def file_manager(registry, blob_store, event_publisher) -> FileManager:
    """Provide a FileManager over in-memory collaborators with a 10 minute ttl."""
    return FileManager(
        registry,
        blob_store,
        default_ttl=timedelta(minutes=10),
        event_publisher=event_publisher,
    )


# =============================================================================
# Pytest Configuration Hooks
# =============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (filesystem or Redis)"
    )
    config.addinivalue_line(
        "markers", "property: Property-based tests using Hypothesis"
    )


def pytest_collection_modifyitems(config, items):
    """
    Automatically mark tests based on their location.

    - tests/unit/* -> @pytest.mark.unit
    - tests/integration/* -> @pytest.mark.integration
    - tests/property/* -> @pytest.mark.property
    """
    for item in items:
        test_path = str(item.fspath)

        if "/unit/" in test_path or "\\unit\\" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path or "\\integration\\" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/property/" in test_path or "\\property\\" in test_path:
            item.add_marker(pytest.mark.property)
