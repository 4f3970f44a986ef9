"""Configuration management for structure-db connections."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineConfig(BaseModel):
    """Settings applied to every SQLite handle when it is opened."""

    busy_timeout_seconds: float = Field(
        default=5.0, gt=0, description="How long SQLite waits on a locked database file"
    )
    cached_statements: int = Field(
        default=128, ge=0, description="Size of the driver's compiled statement cache"
    )
    unicode_case_functions: bool = Field(
        default=True,
        description="Replace UPPER/LOWER with Python's Unicode case mapping",
    )
    foreign_keys: bool = Field(default=True, description="Enforce foreign key constraints")


class QueueConfig(BaseModel):
    """Execution queue configuration."""

    thread_name_prefix: str = Field(
        default="structure-db", min_length=1, description="Name prefix of the worker thread"
    )


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(default="json", description="Log format")
    otel_endpoint: str | None = Field(
        default=None, description="OpenTelemetry collector endpoint"
    )
    otel_service_name: str = Field(default="structure_db", description="Service name for tracing")
    metrics_port: int = Field(default=8001, ge=1, le=65535, description="Prometheus metrics port")


class Config(BaseSettings):
    """Main configuration for structure-db."""

    model_config = SettingsConfigDict(
        env_prefix="STRUCTURE_DB_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    engine: EngineConfig = Field(default_factory=EngineConfig)
    queue: QueueConfig = Field(default_factory=QueueConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


@lru_cache
def get_config() -> Config:
    """Get the global configuration instance."""
    return Config()
