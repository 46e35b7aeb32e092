"""Configuration package for the registry client.

Re-exports the most commonly used configuration symbols so that
callers can write::

    from crpt_api.config import get_settings, BASE_URL

without needing to know which sub-module each symbol lives in.
"""

from __future__ import annotations

from crpt_api.config.defaults import (
    BASE_URL,
    BEARER_PREFIX,
    CONTENT_TYPE_JSON,
    CREATE_DOCUMENT_PATH,
    DEFAULT_REQUEST_LIMIT,
    DEFAULT_REQUEST_PERIOD_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
    DOCUMENT_FORMAT,
    DOCUMENT_TYPE,
)
from crpt_api.config.settings import CrptSettings, get_settings

__all__ = [
    # settings
    "CrptSettings",
    "get_settings",
    # protocol defaults
    "BASE_URL",
    "BEARER_PREFIX",
    "CONTENT_TYPE_JSON",
    "CREATE_DOCUMENT_PATH",
    "DEFAULT_REQUEST_LIMIT",
    "DEFAULT_REQUEST_PERIOD_SECONDS",
    "DEFAULT_TIMEOUT_SECONDS",
    "DOCUMENT_FORMAT",
    "DOCUMENT_TYPE",
]
