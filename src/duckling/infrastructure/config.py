"""Configuration management for the access layer."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Vector size of the engine; one chunk per engine vector by default.
DEFAULT_CHUNK_SIZE = 2048

_ENGINE_OPTION_NAMES: dict[str, str] = {
    "access_mode": "access_mode",
    "maximum_memory": "max_memory",
    "maximum_threads": "threads",
    "default_order_type": "default_order",
    "default_null_order": "default_null_order",
    "enable_external_access": "enable_external_access",
    "object_cache_enable": "enable_object_cache",
    "allow_unsigned_extensions": "allow_unsigned_extensions",
    "temporary_directory": "temp_directory",
    "checkpoint_wal_size": "checkpoint_threshold",
    "preserve_insertion_order": "preserve_insertion_order",
    "extension_directory": "extension_directory",
    "immediate_transaction_mode": "immediate_transaction_mode",
    "collation": "default_collation",
    "force_compression": "force_compression",
}

# Options the engine expects as a size string rather than a plain number.
_BYTE_SIZE_OPTIONS = {"maximum_memory", "checkpoint_wal_size"}


class EngineConfig(BaseModel):
    """Named engine options.

    Every option defaults to None, meaning the engine's own default applies.
    Only options that were set are passed to the engine.
    """

    access_mode: Literal["automatic", "read_only", "read_write"] | None = Field(
        default=None, description="Database access mode"
    )
    maximum_memory: int | None = Field(
        default=None, ge=1, description="Memory limit in bytes"
    )
    maximum_threads: int | None = Field(
        default=None, ge=1, description="Number of engine worker threads"
    )
    default_order_type: Literal["asc", "desc"] | None = Field(
        default=None, description="Default ORDER BY direction"
    )
    default_null_order: Literal["nulls_first", "nulls_last"] | None = Field(
        default=None, description="Default NULL ordering"
    )
    enable_external_access: bool | None = Field(
        default=None, description="Allow reading and writing files outside the database"
    )
    object_cache_enable: bool | None = Field(
        default=None, description="Cache parquet metadata between queries"
    )
    allow_unsigned_extensions: bool | None = Field(
        default=None, description="Allow loading extensions without a valid signature"
    )
    temporary_directory: Path | None = Field(
        default=None, description="Spill directory for larger-than-memory work"
    )
    checkpoint_wal_size: int | None = Field(
        default=None, ge=1, description="WAL size in bytes that triggers a checkpoint"
    )
    preserve_insertion_order: bool | None = Field(
        default=None, description="Keep insertion order for queries without ORDER BY"
    )
    extension_directory: Path | None = Field(
        default=None, description="Directory extensions are installed into"
    )
    immediate_transaction_mode: bool | None = Field(
        default=None, description="Start transactions immediately instead of lazily"
    )
    collation: str | None = Field(default=None, description="Default string collation")
    force_compression: Literal[
        "auto",
        "uncompressed",
        "constant",
        "rle",
        "dictionary",
        "bitpacking",
        "fsst",
        "chimp",
        "patas",
    ] | None = Field(default=None, description="Force a compression method for new data")

    def to_engine_options(self) -> dict[str, Any]:
        """Map the options that were set to engine option names."""
        options: dict[str, Any] = {}
        for field_name, value in self.model_dump(exclude_none=True).items():
            if field_name in _BYTE_SIZE_OPTIONS:
                value = f"{value}b"
            elif isinstance(value, Path):
                value = str(value)
            options[_ENGINE_OPTION_NAMES[field_name]] = value
        return options


class ClientConfig(BaseModel):
    """Client-side behaviour of the access layer."""

    chunk_size: int = Field(
        default=DEFAULT_CHUNK_SIZE, ge=1, le=1_000_000, description="Rows per fetched chunk"
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
    otel_service_name: str = Field(default="duckling", description="Service name for tracing")
    metrics_port: int | None = Field(
        default=None, ge=1, le=65535, description="Prometheus exporter port, disabled if unset"
    )


class Config(BaseSettings):
    """Main configuration for the access layer."""

    model_config = SettingsConfigDict(
        env_prefix="DUCKLING_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    engine: EngineConfig = Field(default_factory=EngineConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


@lru_cache
def get_config() -> Config:
    """Get the global configuration instance."""
    return Config()
