"""Rate-limited client for submitting goods-introduction documents to the
labeling registry.

Re-exports the public API so that callers can write::

    from crpt_api import CrptApiClient, Document, ProductItem
"""

from __future__ import annotations

from crpt_api.client import CrptApiClient
from crpt_api.core.exceptions import (
    ClientClosedError,
    ConfigurationError,
    CrptApiError,
    MissingArgumentError,
    ReplyDecodeError,
    TransportError,
)
from crpt_api.core.rate_limiter import RateLimiter
from crpt_api.core.schemas import (
    ApiReply,
    Document,
    DocumentMeta,
    ProductItem,
    SubmissionEnvelope,
)

__all__ = [
    # client
    "CrptApiClient",
    "RateLimiter",
    # schemas
    "ApiReply",
    "Document",
    "DocumentMeta",
    "ProductItem",
    "SubmissionEnvelope",
    # exceptions
    "CrptApiError",
    "ConfigurationError",
    "MissingArgumentError",
    "ClientClosedError",
    "TransportError",
    "ReplyDecodeError",
]
