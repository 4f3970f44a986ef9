"""Unit tests for configuration module."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from structure_db.infrastructure.config import (
    Config,
    EngineConfig,
    ObservabilityConfig,
    QueueConfig,
    get_config,
)


@pytest.mark.unit
class TestConfig:
    """Tests for Config class."""

    def test_default_config(self) -> None:
        """Test default configuration values."""
        config = Config()

        assert config.engine.busy_timeout_seconds == 5.0
        assert config.engine.cached_statements == 128
        assert config.engine.unicode_case_functions is True
        assert config.engine.foreign_keys is True
        assert config.queue.thread_name_prefix == "structure-db"
        assert config.observability.log_format == "json"
        assert config.observability.otel_endpoint is None

    def test_custom_engine_config(self) -> None:
        """Test custom engine configuration."""
        engine = EngineConfig(busy_timeout_seconds=0.5, unicode_case_functions=False)

        assert engine.busy_timeout_seconds == 0.5
        assert engine.unicode_case_functions is False

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"busy_timeout_seconds": 0},
            {"cached_statements": -1},
        ],
    )
    def test_invalid_engine_config(self, kwargs: dict) -> None:
        """Test that out-of-range engine settings are rejected."""
        with pytest.raises(ValidationError):
            EngineConfig(**kwargs)

    def test_invalid_queue_name(self) -> None:
        """Test that the worker name prefix cannot be empty."""
        with pytest.raises(ValidationError):
            QueueConfig(thread_name_prefix="")

    def test_invalid_log_level(self) -> None:
        """Test that unknown log levels are rejected."""
        with pytest.raises(ValidationError):
            ObservabilityConfig(log_level="VERBOSE")  # type: ignore[arg-type]

    def test_environment_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test nested settings read from the environment."""
        monkeypatch.setenv("STRUCTURE_DB_ENGINE__BUSY_TIMEOUT_SECONDS", "2.5")
        monkeypatch.setenv("STRUCTURE_DB_QUEUE__THREAD_NAME_PREFIX", "orders")
        monkeypatch.setenv("STRUCTURE_DB_OBSERVABILITY__LOG_LEVEL", "DEBUG")

        config = Config()

        assert config.engine.busy_timeout_seconds == 2.5
        assert config.queue.thread_name_prefix == "orders"
        assert config.observability.log_level == "DEBUG"

    def test_get_config_is_cached(self) -> None:
        """Test that get_config returns one shared instance."""
        assert get_config() is get_config()
