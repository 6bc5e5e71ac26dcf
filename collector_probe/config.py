"""Probe configuration management via pydantic-settings.

Centralize the configuration parameters used when probing a running collector.
Load settings from environment variables and/or a `.env` file and provide type
validation and default values. The introspection port and scheme are fixed by
the collector and are intentionally not configurable here.
"""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Probe-wide configuration settings.

    Attributes:
        PROJECT_NAME: Display name used in log output.
        VERSION: Semantic version string.
        ENVIRONMENT: Where the probe runs; selects the log renderer.
        LOG_LEVEL: Minimum logging verbosity level.
        LOGGING_NOISY_MODULES: Third-party loggers pinned to WARNING.
        COLLECTOR_HOST: Address of the collector under test.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # ==========================================================================
    # PROJECT METADATA
    # ==========================================================================
    PROJECT_NAME: str = "collector-probe"
    VERSION: str = "0.1.0"

    # ==========================================================================
    # ENVIRONMENT & LOGGING
    # ==========================================================================
    ENVIRONMENT: Literal["development", "ci"] = "development"
    LOG_LEVEL: Literal["debug", "info", "warning", "error", "critical"] = "info"
    LOGGING_NOISY_MODULES: list[str] = [
        "httpx",
        "httpcore",
        "asyncio",
    ]

    # ==========================================================================
    # COLLECTOR UNDER TEST
    # ==========================================================================
    COLLECTOR_HOST: str = "127.0.0.1"

    @field_validator("COLLECTOR_HOST")
    @classmethod
    def validate_collector_host(cls, v: str) -> str:
        """Strip surrounding whitespace and reject an empty host.

        Args:
            v: The COLLECTOR_HOST value to validate.

        Returns:
            The stripped host.

        Raises:
            ValueError: If the host is empty after stripping.
        """
        host = v.strip()
        if not host:
            raise ValueError("COLLECTOR_HOST must not be empty.")
        return host


@lru_cache()
def get_settings() -> Settings:
    """Return a cached singleton instance of the probe settings.

    Returns:
        The singleton Settings instance.
    """
    return Settings()
