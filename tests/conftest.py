"""
Pytest fixtures for the sitio kernel test suite.

Provides:
- Deterministic clock
- In-memory and SQLite-backed persistence adapters
- Authorizers for the three user roles
- Fully wired ConfigStores
- Captured structured logs
"""

import json
import logging
from decimal import Decimal
from io import StringIO

import pytest

from sitio_config import build_config_stores
from sitio_kernel.db.engine import create_tables, get_session_factory, init_engine_from_url, reset_engine
from sitio_kernel.domain.clock import DeterministicClock
from sitio_kernel.domain.schemas import PovertyThresholdsConfig
from sitio_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from sitio_kernel.services.authorization import RoleBasedAuthorizer, UserRole
from sitio_kernel.services.persistence import (
    InMemoryPersistenceAdapter,
    SqlAlchemyPersistenceAdapter,
)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture sitio_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, stores):
            stores.poverty_thresholds.reset()
            logs = captured_logs()
            assert any(r["message"] == "config_reset_unchanged" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("sitio_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "sqlite: mark test as using a SQLite database file")


# =============================================================================
# Kernel fixtures
# =============================================================================


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock()


@pytest.fixture
def memory_persistence() -> InMemoryPersistenceAdapter:
    return InMemoryPersistenceAdapter()


@pytest.fixture
def sqlite_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'sitio.db'}"


@pytest.fixture
def sqlite_engine(sqlite_url):
    """Engine bound to a fresh SQLite file with all tables created."""
    engine = init_engine_from_url(sqlite_url)
    create_tables()
    yield engine
    reset_engine()


@pytest.fixture
def sql_persistence(sqlite_engine, clock) -> SqlAlchemyPersistenceAdapter:
    return SqlAlchemyPersistenceAdapter(get_session_factory(), clock)


@pytest.fixture
def admin() -> RoleBasedAuthorizer:
    return RoleBasedAuthorizer(UserRole.ADMIN, "alice")


@pytest.fixture
def viewer() -> RoleBasedAuthorizer:
    return RoleBasedAuthorizer(UserRole.VIEWER, "victor")


@pytest.fixture
def stores(memory_persistence, admin, clock):
    """All domain stores over the in-memory adapter, written as an admin."""
    return build_config_stores(memory_persistence, admin, clock)


@pytest.fixture
def thresholds_9000() -> PovertyThresholdsConfig:
    """Threshold whose daily figure is exactly 300."""
    return PovertyThresholdsConfig(
        monthly_threshold=Decimal("9000"),
        reference_year=2023,
        source="PSA",
        description="Family of 5",
    )
