"""Authenticated HTTP transport built on aiohttp.

The ``Client`` is the explicitly passed, immutably configured handle that every
query invocation uses. It offers two calls to the rest of the package:

- ``call_raw``: issue one request and return the complete response body
- ``open_stream``: issue one request and return the open body as a ByteSource

Connection setup is retried with Tenacity. Idempotent requests are also retried
on 429/5xx replies and dropped connections; POSTs only when the connection
could not be established. Reads from an open stream are never retried here.
"""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING, Any, Callable, Optional

import aiohttp
from tenacity import (
    AsyncRetrying,
    retry_base,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..core.config import ClientConfig
from ..core.errors import (
    DecodeError,
    TransportError,
    TwitterAPIError,
    _build_twitter_api_error,
    _classify_retryable_status,
    _RetryableHTTPStatusError,
    _RetryWait,
)
from ..core.logging_system import RequestLogger
from ..core.utils import _truncate_bytes
from .request import Request

if TYPE_CHECKING:
    from ..streaming.consumer import ErrorCallback, MessageCallback, StreamResult

LOGGER = RequestLogger.get_logger(__name__)

# Methods safe to resend after the server may already have acted on them.
_IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "PUT", "DELETE"})

Authorizer = Callable[[Request, dict[str, str]], None]


class ResponseByteSource:
    """ByteSource over an open aiohttp response body."""

    def __init__(self, response: aiohttp.ClientResponse, *, chunk_size: int = 4096) -> None:
        self._response = response
        self._chunk_size = max(1, chunk_size)
        self._closed = False

    @property
    def status(self) -> int:
        return self._response.status

    @property
    def closed(self) -> bool:
        return self._closed

    async def read(self) -> bytes:
        """Return the next chunk of the body, or ``b""`` at end of stream."""
        return await self._response.content.read(self._chunk_size)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # close() drops the connection instead of draining an endless body.
        self._response.close()


class Client:
    """Shared transport handle for REST and streaming invocations.

    Args:
        config: Client configuration; defaults are read from the environment.
        session: Optional caller-owned aiohttp session. When omitted the
            client creates one lazily and closes it in ``close()``.
        authorize: Optional hook that signs a request by mutating its headers
            (e.g. OAuth 1.0a user context). Used instead of the bearer token.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        authorize: Optional[Authorizer] = None,
    ) -> None:
        self.config = config or ClientConfig()
        self._session = session
        self._owns_session = session is None
        self._authorize = authorize
        self.logger = LOGGER

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        if self._owns_session:
            self._session = None

    # ----------------------------------------------------------------------
    # Session / headers
    # ----------------------------------------------------------------------

    def _create_http_session(self) -> aiohttp.ClientSession:
        """Return a ClientSession with timeouts suited to long-lived streams."""
        config = self.config
        connector = aiohttp.TCPConnector(
            limit=50,
            limit_per_host=10,
            keepalive_timeout=75,
            ttl_dns_cache=300,
        )
        connect_timeout = float(config.HTTP_CONNECT_TIMEOUT_SECONDS)
        total_timeout = float(config.HTTP_TOTAL_TIMEOUT_SECONDS) if config.HTTP_TOTAL_TIMEOUT_SECONDS else None
        sock_read = float(config.HTTP_SOCK_READ_SECONDS)
        timeout = aiohttp.ClientTimeout(total=total_timeout, connect=connect_timeout, sock_read=sock_read)
        self.logger.debug(
            "HTTP timeouts: connect=%ss total=%s sock_read=%ss",
            connect_timeout,
            total_timeout if total_timeout is not None else "disabled",
            sock_read,
        )
        return aiohttp.ClientSession(
            connector=connector,
            timeout=timeout,
            json_serialize=json.dumps,
        )

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            if not self._owns_session:
                raise TransportError("caller-supplied aiohttp session is closed")
            self._session = self._create_http_session()
        return self._session

    def _headers(self, request: Request) -> dict[str, str]:
        headers = {"User-Agent": self.config.USER_AGENT}
        if request.content_type:
            headers["Content-Type"] = request.content_type
        if self._authorize is not None:
            self._authorize(request, headers)
        elif self.config.BEARER_TOKEN:
            headers["Authorization"] = f"Bearer {self.config.BEARER_TOKEN}"
        return headers

    # ----------------------------------------------------------------------
    # Sending
    # ----------------------------------------------------------------------

    @staticmethod
    def _retry_policy(request: Request) -> retry_base:
        """Return the Tenacity retry condition for ``request``.

        A POST such as ``statuses/update`` may already have taken effect when
        the server drops the connection or answers 5xx, so it is resent only
        when the connection itself could not be established.
        """
        policy = retry_if_exception_type(aiohttp.ClientConnectorError)
        if request.http_method.upper() in _IDEMPOTENT_METHODS:
            policy = policy | retry_if_exception_type(
                (aiohttp.ClientConnectionError, asyncio.TimeoutError, _RetryableHTTPStatusError)
            )
        return policy

    async def _send(self, request: Request) -> aiohttp.ClientResponse:
        """Issue ``request`` and return a 2xx response with its body unread."""
        request = request.snapshot()
        session = self._get_session()
        url = self.config.api_url(request.method)
        headers = self._headers(request)
        params = request.params.items_flat()
        max_wait = self.config.RETRY_MAX_WAIT_SECONDS
        self.logger.debug("Twitter request: %s %s params=%s", request.http_method, url, params)

        retryer = AsyncRetrying(
            stop=stop_after_attempt(self.config.CONNECT_MAX_ATTEMPTS),
            wait=_RetryWait(
                wait_exponential(multiplier=0.5, min=min(0.5, max_wait), max=max_wait),
                max_wait=max_wait,
            ),
            retry=self._retry_policy(request),
            reraise=True,
        )

        try:
            async for attempt in retryer:
                with attempt:
                    attempt_number = attempt.retry_state.attempt_number
                    if attempt_number > 1:
                        self.logger.info(
                            "Retrying %s %s (attempt %d/%d)",
                            request.http_method,
                            request.method,
                            attempt_number,
                            self.config.CONNECT_MAX_ATTEMPTS,
                        )
                    resp = await session.request(
                        request.http_method,
                        url,
                        params=params or None,
                        data=request.data,
                        headers=headers,
                    )
                    if resp.status >= 400:
                        error = await self._error_from_response(resp)
                        retryable, retry_after = _classify_retryable_status(resp.status, resp.headers)
                        if retryable:
                            self.logger.warning(
                                "Twitter %s %s returned %d (retry_after=%s)",
                                request.http_method,
                                request.method,
                                resp.status,
                                retry_after,
                            )
                            raise _RetryableHTTPStatusError(error, retry_after)
                        raise error
                    return resp
        except _RetryableHTTPStatusError as exc:
            raise exc.error from None
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise TransportError(f"{request.http_method} {request.method} failed", cause=exc) from exc
        raise TransportError(f"{request.http_method} {request.method} produced no response")

    async def _error_from_response(self, resp: aiohttp.ClientResponse) -> TwitterAPIError:
        try:
            body = await resp.text(errors="replace")
        except (aiohttp.ClientError, asyncio.TimeoutError):
            body = ""
        finally:
            resp.release()
        error = _build_twitter_api_error(resp.status, resp.reason or "HTTP error", body, headers=resp.headers)
        self.logger.debug("Twitter error response:\n%s", error.describe())
        return error

    async def call_raw(self, request: Request) -> bytes:
        """Issue one request and return the complete response body."""
        resp = await self._send(request)
        try:
            data = await resp.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise TransportError(f"reading {request.method} response", cause=exc) from exc
        finally:
            resp.release()
        self.logger.debug("Twitter response %s: %s", request.method, _truncate_bytes(data))
        return data

    async def call_json(self, request: Request) -> tuple[Any, bytes]:
        """Issue one request and return (parsed JSON, raw body)."""
        data = await self.call_raw(request)
        try:
            return json.loads(data), data
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise DecodeError(data=data, cause=exc) from exc

    async def open_stream(self, request: Request) -> ResponseByteSource:
        """Issue a streaming request and return the open body."""
        resp = await self._send(request)
        self.logger.info("Stream opened: %s (status %d)", request.method, resp.status)
        return ResponseByteSource(resp, chunk_size=self.config.STREAM_READ_CHUNK_BYTES)

    async def stream(
        self,
        request: Request,
        callback: "MessageCallback",
        *,
        on_error: Optional["ErrorCallback"] = None,
        cancel: Optional[asyncio.Event] = None,
        timeout: Optional[float] = None,
    ) -> "StreamResult":
        """Consume a streaming endpoint, delivering each message as a generic Reply."""
        from ..queries.base import decode_reply
        from ..streaming.consumer import StreamConsumer

        consumer = StreamConsumer(
            lambda: self.open_stream(request),
            decode=decode_reply,
            max_frame_bytes=self.config.STREAM_MAX_FRAME_BYTES,
            name=request.method,
        )
        return await consumer.run(callback, on_error=on_error, cancel=cancel, timeout=timeout)
