"""
Runtime settings for variant generation.

Stage deadlines, the accepted image bounds and worker pool sizing are read
from ``VARIANT_*`` environment variables (or a local ``.env``). Callers may
pass their own ``Settings`` to any entry point; otherwise the cached
``get_settings()`` instance is used.
"""

from functools import lru_cache
import logging
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="VARIANT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Stage deadlines
    metadata_timeout_seconds: float = Field(10.0)
    transform_timeout_seconds: float = Field(30.0)
    # Longest a transform job may wait for a free worker before it is dropped.
    queue_timeout_seconds: float = Field(60.0)

    # Input bounds
    max_dimension: int = Field(10000)

    # Concurrency: decode/encode slots shared by every caller, and image-level
    # coordinators per batch call.
    worker_pool_size: int = Field(4)
    batch_concurrency: int = Field(8)

    default_use_case: str = Field("property")
    log_level: str = Field("INFO")

    @field_validator(
        "metadata_timeout_seconds",
        "transform_timeout_seconds",
        "queue_timeout_seconds",
        "max_dimension",
        "worker_pool_size",
        "batch_concurrency",
    )
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        if not isinstance(logging.getLevelName(v.upper()), int):
            raise ValueError("LOG_LEVEL must be a standard logging level name")
        return v.upper()


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings to avoid reparsing env on every call."""
    return Settings()


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Apply the configured log level to the root logger."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
