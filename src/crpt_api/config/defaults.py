"""Fixed protocol values for the labeling-registry document API.

These are wire-level constants: the endpoint, the literal envelope fields,
and the header values every submission carries.  Values that an operator
may reasonably change (token, limits, timeouts, base URL override) live in
:mod:`crpt_api.config.settings` instead.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------

BASE_URL: str = "https://ismp.crpt.ru"
"""Scheme and host of the registry API."""

CREATE_DOCUMENT_PATH: str = "/api/v3/lk/documents/create"
"""Path of the document-creation endpoint (POST, JSON body)."""

# ---------------------------------------------------------------------------
# Envelope literals
# ---------------------------------------------------------------------------

DOCUMENT_FORMAT: str = "MANUAL"
"""Value of the envelope ``document_format`` field."""

DOCUMENT_TYPE: str = "LP_INTRODUCE_GOODS"
"""Value of the envelope ``type`` field (introduction of goods into circulation)."""

# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

CONTENT_TYPE_JSON: str = "application/json"

BEARER_PREFIX: str = "Bearer "

DEFAULT_TIMEOUT_SECONDS: float = 30.0
"""Per-request timeout applied to the client-owned ``httpx.AsyncClient``."""

# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------

DEFAULT_REQUEST_LIMIT: int = 10
"""Default number of submissions that may begin per period."""

DEFAULT_REQUEST_PERIOD_SECONDS: float = 1.0
"""Default length of one rate-limit window."""
