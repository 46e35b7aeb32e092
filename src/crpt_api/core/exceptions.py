"""Exception hierarchy for the labeling-registry client.

All custom exceptions subclass ``CrptApiError`` so that callers can catch
every client-side failure with a single ``except`` clause when needed.

Hierarchy::

    CrptApiError
    ├── ConfigurationError      (also ValueError)
    ├── MissingArgumentError    (also ValueError; arguments: tuple[str, ...])
    ├── ClientClosedError
    ├── TransportError          (url: str | None)
    └── ReplyDecodeError        (status_code: int, body: str)

Two outcomes are deliberately *not* represented here:

- Cancellation of a caller blocked on the rate limiter (or on the network)
  surfaces as :class:`asyncio.CancelledError`, untouched.
- A non-2xx answer from the registry is returned as an
  :class:`~crpt_api.core.schemas.ApiReply` whose ``code`` holds the HTTP
  status; callers branch on ``code``.
"""

from __future__ import annotations


class CrptApiError(Exception):
    """Base class for all client exceptions."""


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class ConfigurationError(CrptApiError, ValueError):
    """Raised when a client or rate limiter is constructed with invalid settings.

    Covers an empty bearer token, a non-positive capacity, a non-positive
    period, and construction outside a running event loop.  No client or
    refill task survives a construction that raised this error.
    """


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------


class MissingArgumentError(CrptApiError, ValueError):
    """Raised when a required submission argument is absent.

    Raised before the rate limiter is touched, so a call that fails this
    check never consumes a permit and never reaches the network.

    Args:
        arguments: Names of the arguments that were ``None``.
    """

    def __init__(self, arguments: tuple[str, ...]) -> None:
        self.arguments = arguments
        super().__init__(f"Missing required argument(s): {', '.join(arguments)}")


class ClientClosedError(CrptApiError):
    """Raised when ``submit`` is called on a client that has been shut down.

    Checked before the rate limiter is touched; no permit is consumed.
    """


class TransportError(CrptApiError):
    """Raised when the HTTPS exchange with the registry fails below HTTP.

    Connection failures, timeouts and protocol errors all map here.  The
    permit taken for the call is not refunded.

    Args:
        message: Human-readable description of the failure.
        url: The URL that was being requested.
    """

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class ReplyDecodeError(CrptApiError):
    """Raised when a 2xx response body cannot be read as a reply object.

    Args:
        status_code: HTTP status of the response.
        body: Raw response text.
    """

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(
            f"HTTP {status_code} response body is not a JSON reply object: {body[:200]!r}"
        )
        self.status_code = status_code
        self.body = body
