"""Client settings loaded from environment variables.

Uses Pydantic Settings v2 for validated, type-safe configuration.  Every
variable carries the ``CRPT_`` prefix, e.g. ``CRPT_API_TOKEN``.

Usage::

    from crpt_api.config.settings import get_settings

    settings = get_settings()
    limit = settings.request_limit
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from crpt_api.config.defaults import (
    BASE_URL,
    DEFAULT_REQUEST_LIMIT,
    DEFAULT_REQUEST_PERIOD_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
)


class CrptSettings(BaseSettings):
    """Client configuration backed by environment variables and an optional .env file.

    Range checks on the limiter values are left to the client constructor so
    that a misconfigured environment fails with the same
    :class:`~crpt_api.core.exceptions.ConfigurationError` as a misconfigured
    direct call.
    """

    model_config = SettingsConfigDict(
        env_prefix="CRPT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    api_token: str = ""
    """Bearer token sent in the ``Authorization`` header.  Must be non-empty
    by the time a client is constructed."""

    # ------------------------------------------------------------------
    # Endpoint
    # ------------------------------------------------------------------

    base_url: str = BASE_URL
    """Registry scheme and host.  Override only for sandbox environments."""

    http_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    """Timeout for one HTTPS exchange."""

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    request_limit: int = DEFAULT_REQUEST_LIMIT
    """Number of submissions that may begin per window (N)."""

    request_period_seconds: float = DEFAULT_REQUEST_PERIOD_SECONDS
    """Window length in seconds (T)."""

    # ------------------------------------------------------------------
    # Application behaviour
    # ------------------------------------------------------------------

    log_level: str = "INFO"
    """Logging verbosity.  One of: DEBUG, INFO, WARNING, ERROR, CRITICAL."""


@lru_cache
def get_settings() -> CrptSettings:
    """Return the cached settings instance.

    Call ``get_settings.cache_clear()`` after changing the environment (e.g.
    in tests) to force a re-read.
    """
    return CrptSettings()
