"""
Shared pytest fixtures for the reputation server test suite.

This module provides fixtures that are automatically available to all test files:
- In-memory and temporary SQLite key-value stores
- Module settings with known values (independent of config/server.ini)
- ReputationService instances in per-subject and shared mode
- FastAPI TestClient instances and identity headers

Async tests use ``@pytest.mark.asyncio``; fixtures stay synchronous because
building a service does not touch the store.
"""

from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from reputation_server.api.server import create_app
from reputation_server.config import use_test_store
from reputation_server.core.service import ReputationService
from reputation_server.reputation.actors import StaticActorContext
from reputation_server.reputation.lookup import InMemoryLookupTableProvider
from reputation_server.reputation.settings import ModuleSettings
from reputation_server.store.kv import MemoryKeyValueStore, SqliteKeyValueStore
from tests.constants import NAMESPACE


# ============================================================================
# STORE FIXTURES
# ============================================================================


@pytest.fixture(scope="function")
def memory_store() -> MemoryKeyValueStore:
    """Fresh in-memory key-value store for each test."""
    return MemoryKeyValueStore()


@pytest.fixture(scope="function")
def temp_store_path(tmp_path: Path) -> Generator[Path, None, None]:
    """
    Point the config at a temporary SQLite store file.

    Uses the config system's ``use_test_store`` context manager so code that
    resolves ``store.path`` at call time sees the temporary file.

    Yields:
        Path to the (not yet created) store file
    """
    with use_test_store(tmp_path / "test_reputation.db") as path:
        yield path


@pytest.fixture(scope="function")
def sqlite_store(temp_store_path: Path) -> SqliteKeyValueStore:
    """SQLite store bound to the temporary store file."""
    return SqliteKeyValueStore(temp_store_path)


# ============================================================================
# ENGINE FIXTURES
# ============================================================================


@pytest.fixture(scope="function")
def per_subject_settings() -> ModuleSettings:
    """
    Module settings with per-subject storage as the process default.

    Tests pass these explicitly so a local config/server.ini or REP_*
    environment variables cannot change their outcome.
    """
    return ModuleSettings(
        per_subject_default=True,
        start_at_neutral=True,
        post_notifications=True,
        notification_visibility="operators",
        subject_access="none",
    )


@pytest.fixture(scope="function")
def shared_settings(per_subject_settings: ModuleSettings) -> ModuleSettings:
    """Module settings with shared storage as the process default."""
    return per_subject_settings.merged({"per_subject_default": False})


@pytest.fixture(scope="function")
def lookup_provider() -> InMemoryLookupTableProvider:
    """Empty in-memory lookup table provider; tests add tables with save_table."""
    return InMemoryLookupTableProvider()


@pytest.fixture(scope="function")
def service(
    memory_store: MemoryKeyValueStore,
    per_subject_settings: ModuleSettings,
    lookup_provider: InMemoryLookupTableProvider,
) -> ReputationService:
    """
    ReputationService over an in-memory store, per-subject by default.

    The acting identity is ``"gm"`` unless a call passes ``actor=``.
    """
    return ReputationService(
        memory_store,
        namespace=NAMESPACE,
        lookup_provider=lookup_provider,
        actors=StaticActorContext("gm"),
        settings_defaults=per_subject_settings,
    )


@pytest.fixture(scope="function")
def shared_service(
    memory_store: MemoryKeyValueStore,
    shared_settings: ModuleSettings,
    lookup_provider: InMemoryLookupTableProvider,
) -> ReputationService:
    """ReputationService whose ``inherit`` factions resolve to shared storage."""
    return ReputationService(
        memory_store,
        namespace=NAMESPACE,
        lookup_provider=lookup_provider,
        actors=StaticActorContext("gm"),
        settings_defaults=shared_settings,
    )


# ============================================================================
# API FIXTURES
# ============================================================================


@pytest.fixture(scope="function")
def test_client(service: ReputationService) -> TestClient:
    """
    FastAPI TestClient wired to the in-memory ``service`` fixture.

    Example:
        def test_health(test_client):
            response = test_client.get("/health")
            assert response.status_code == 200
    """
    return TestClient(create_app(service))


@pytest.fixture
def operator_headers() -> dict[str, str]:
    return {"X-Actor-Id": "gm-alice", "X-Actor-Role": "operator"}


@pytest.fixture
def subject_headers() -> dict[str, str]:
    return {"X-Actor-Id": "player-1", "X-Actor-Role": "subject"}
