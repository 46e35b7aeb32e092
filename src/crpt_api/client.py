"""Rate-limited client for the registry's document-creation endpoint.

One :class:`CrptApiClient` is shared by every task in the process that
submits documents.  Each :meth:`~CrptApiClient.submit` call takes one
permit from the client's :class:`~crpt_api.core.rate_limiter.RateLimiter`
before it touches the network; the permit is never returned, whatever the
outcome of the HTTP exchange.

Typical usage::

    async with CrptApiClient(token, period=1.0, capacity=10) as api:
        reply = await api.submit(document, signature, product_group="milk")
        if reply.rejected:
            ...  # registry rejected the document; reply.code is the HTTP status

Outcomes of ``submit``:

- 2xx → the parsed :class:`~crpt_api.core.schemas.ApiReply`.
- any other status → ``ApiReply(code="<status>", error_message="<body>")``,
  returned, not raised.
- network failure → :class:`~crpt_api.core.exceptions.TransportError`.
- caller cancelled while waiting → :class:`asyncio.CancelledError`.
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import timedelta

import httpx
import structlog
from pydantic import ValidationError

from crpt_api.config.defaults import (
    BASE_URL,
    BEARER_PREFIX,
    CONTENT_TYPE_JSON,
    CREATE_DOCUMENT_PATH,
    DEFAULT_TIMEOUT_SECONDS,
)
from crpt_api.config.settings import CrptSettings, get_settings
from crpt_api.core.envelope import build_envelope, require_present
from crpt_api.core.exceptions import (
    ClientClosedError,
    ConfigurationError,
    ReplyDecodeError,
    TransportError,
)
from crpt_api.core.logging_config import submission_id_var
from crpt_api.core.rate_limiter import RateLimiter
from crpt_api.core.schemas import ApiReply, Document

logger = structlog.get_logger(__name__)


class CrptApiClient:
    """Submits goods-introduction documents under a fixed-window rate limit.

    The refill timer of the rate limiter starts as soon as the constructor
    returns, so the client must be built inside a running event loop.

    Args:
        token: Bearer token for the ``Authorization`` header.  Must be a
            non-empty string.
        period: Rate-limit window, in seconds or as a ``timedelta``.
        capacity: Submissions that may begin per window.
        base_url: Registry scheme and host.
        timeout: Timeout for the client-owned HTTP client.  Ignored when
            *http_client* is given.
        http_client: Pre-configured ``httpx.AsyncClient`` to send requests
            with.  The caller keeps ownership and must close it.

    Raises:
        ConfigurationError: On an empty token, a non-positive period or
            capacity, or when no event loop is running.
    """

    def __init__(
        self,
        token: str,
        period: float | timedelta,
        capacity: int,
        *,
        base_url: str = BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not isinstance(token, str) or not token:
            raise ConfigurationError("token must be a non-empty string")
        limiter = RateLimiter(capacity=capacity, period=period)
        try:
            asyncio.get_running_loop()
        except RuntimeError as exc:
            raise ConfigurationError(
                "CrptApiClient must be constructed inside a running event loop"
            ) from exc

        self._token = token
        self._url = base_url.rstrip("/") + CREATE_DOCUMENT_PATH
        self._owns_http_client = http_client is None
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=timeout)
        self._limiter = limiter
        self._closed = False
        self._http_closed = False
        # POSTs currently awaiting the registry; aclose() drains them first.
        self._in_flight = 0
        self._idle = asyncio.Event()
        self._idle.set()

        limiter.start()
        logger.info(
            "crpt client started",
            url=self._url,
            capacity=limiter.capacity,
            period_seconds=limiter.period,
        )

    @classmethod
    def from_settings(
        cls,
        settings: CrptSettings | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> CrptApiClient:
        """Build a client from :class:`CrptSettings` (``CRPT_*`` variables).

        Args:
            settings: Settings to use; defaults to :func:`get_settings`.
            http_client: Optional caller-owned HTTP client.
        """
        settings = settings or get_settings()
        return cls(
            settings.api_token,
            period=settings.request_period_seconds,
            capacity=settings.request_limit,
            base_url=settings.base_url,
            timeout=settings.http_timeout_seconds,
            http_client=http_client,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def url(self) -> str:
        """Full URL of the document-creation endpoint."""
        return self._url

    @property
    def limiter(self) -> RateLimiter:
        return self._limiter

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit(
        self,
        document: Document,
        signature: str,
        product_group: str,
    ) -> ApiReply:
        """Submit one goods-introduction document.

        Args:
            document: The document to register.
            signature: Detached signature of the document, passed through.
            product_group: Product group tag, passed through.

        Returns:
            The registry reply.  A non-2xx answer is returned as an
            :class:`ApiReply` whose ``code`` is the HTTP status.

        Raises:
            MissingArgumentError: If an argument is ``None``.  No permit is
                consumed.
            ClientClosedError: If the client has been shut down, or its HTTP
                client was closed while this call waited for a permit.
            TransportError: If the HTTPS exchange fails.  The permit stays
                consumed.
            ReplyDecodeError: If a 2xx body is not a JSON object.
            asyncio.CancelledError: If the caller is cancelled while waiting
                for a permit or for the response.
        """
        require_present(
            document=document,
            signature=signature,
            product_group=product_group,
        )
        if self._closed:
            raise ClientClosedError("client has been shut down")

        ctx_token = submission_id_var.set(str(uuid.uuid4()))
        try:
            await self._limiter.acquire()
            if self._http_closed:
                raise ClientClosedError("HTTP transport has been closed")
            envelope = build_envelope(document, signature, product_group)
            logger.debug(
                "submission admitted",
                product_group=product_group,
                permits_left=self._limiter.available,
            )
            self._in_flight += 1
            self._idle.clear()
            try:
                response = await self._post(envelope.model_dump_json())
            finally:
                self._in_flight -= 1
                if self._in_flight == 0:
                    self._idle.set()
            return self._to_reply(response)
        finally:
            submission_id_var.reset(ctx_token)

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": CONTENT_TYPE_JSON,
            "Authorization": BEARER_PREFIX + self._token,
        }

    async def _post(self, body: str) -> httpx.Response:
        """Send *body* to the creation endpoint.

        Raises:
            TransportError: On any ``httpx.RequestError``.
        """
        try:
            return await self._http.post(self._url, content=body, headers=self._headers())
        except httpx.RequestError as exc:
            logger.warning("submission transport failure", url=self._url, error=str(exc))
            raise TransportError(
                f"crpt: network error on POST {self._url}: {exc}",
                url=self._url,
            ) from exc

    def _to_reply(self, response: httpx.Response) -> ApiReply:
        status = response.status_code
        if 200 <= status < 300:
            try:
                reply = ApiReply.model_validate_json(response.text)
            except ValidationError as exc:
                raise ReplyDecodeError(status, response.text) from exc
            logger.info("submission accepted", status_code=status, reply_code=reply.code)
            return reply

        logger.warning("submission rejected", status_code=status)
        return ApiReply(code=str(status), error_message=response.text)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def shutdown(self) -> None:
        """Stop the refill timer.

        New submissions are refused with :class:`ClientClosedError`.
        Submissions already talking to the registry run to completion, and
        tasks already blocked waiting for a permit are not released; with no
        more refills they wait until they are cancelled.  The HTTP client is
        left open; use :meth:`aclose` (or ``async with``) to release it.
        Calling ``shutdown()`` again is a no-op.
        """
        if self._closed:
            return
        self._closed = True
        self._limiter.stop()
        await self._limiter.wait_stopped()
        logger.info(
            "crpt client shut down",
            still_waiting=self._limiter.waiting,
            in_flight=self._in_flight,
        )

    async def aclose(self) -> None:
        """Shut down, then close the owned HTTP client once it is idle.

        Waits for every in-flight POST to return before the transport is
        closed, so an admitted submission always receives its reply.  An
        injected ``http_client`` is never closed.
        """
        await self.shutdown()
        if not self._owns_http_client or self._http_closed:
            return
        while self._in_flight:
            await self._idle.wait()
        self._http_closed = True
        await self._http.aclose()
        logger.debug("crpt transport closed")

    async def __aenter__(self) -> CrptApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
