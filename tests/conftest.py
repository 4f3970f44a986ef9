"""Pytest configuration and fixtures for structure_db tests."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Callable, Generator

import pytest
from prometheus_client import CollectorRegistry

from structure_db import Connection
from structure_db.infrastructure.config import Config, EngineConfig, QueueConfig
from structure_db.infrastructure.metrics import MetricsRegistry


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_config() -> Config:
    """Provide a configuration that ignores the environment's defaults."""
    return Config(
        engine=EngineConfig(busy_timeout_seconds=1.0, cached_statements=16),
        queue=QueueConfig(thread_name_prefix="structure-db-test"),
    )


@pytest.fixture
def collector_registry() -> CollectorRegistry:
    """Provide an isolated Prometheus registry."""
    return CollectorRegistry(auto_describe=True)


@pytest.fixture
def metrics_registry(collector_registry: CollectorRegistry) -> MetricsRegistry:
    """Provide a fresh metrics registry for each test."""
    # Use a separate registry to avoid conflicts between tests
    return MetricsRegistry(registry=collector_registry)


@pytest.fixture
def connection(
    test_config: Config, metrics_registry: MetricsRegistry
) -> Generator[Connection, None, None]:
    """Provide an open in-memory connection, closed after the test."""
    conn = Connection.open(config=test_config, metrics=metrics_registry)
    yield conn
    if conn.is_open:
        conn.close()


@pytest.fixture
def foo_connection(connection: Connection) -> Connection:
    """Provide a connection with a ``foo`` table of one column per storage class."""
    connection.execute(
        "CREATE TABLE foo (id INTEGER PRIMARY KEY AUTOINCREMENT, "
        "a INTEGER, b REAL, c TEXT, d INTEGER, e BLOB)"
    )
    return connection


@pytest.fixture
def sample(collector_registry: CollectorRegistry) -> Callable[..., float]:
    """Read one sample from the test registry, 0.0 if it was never recorded."""

    def read(name: str, **labels: str) -> float:
        value = collector_registry.get_sample_value(name, labels or None)
        return 0.0 if value is None else value

    return read


# Markers for test categories
def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow tests")
