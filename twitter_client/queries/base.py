"""Query contract shared by every endpoint builder.

A query value owns one ``Request``. ``invoke`` performs exactly one call and
returns exactly one decoded reply. Paginated queries additionally hold a
``PaginationCursor`` that each successful invocation advances; streaming
queries hand their request to ``StreamConsumer``.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, AsyncIterator, ClassVar, Generic, Optional, TypeVar

from pydantic import ValidationError

from ..core.errors import DecodeError
from ..core.logging_system import RequestLogger
from ..models.tweets import Includes, MatchingRule, Meta, V2Envelope
from ..streaming.consumer import ErrorCallback, MessageCallback, StreamConsumer, StreamResult
from ..transport.request import Request
from .pagination import PaginationCursor

if TYPE_CHECKING:
    from ..transport.client import Client

LOGGER = RequestLogger.get_logger(__name__)

ReplyT = TypeVar("ReplyT")
MessageT = TypeVar("MessageT")


@dataclass
class Reply:
    """Decoded v2 envelope plus the raw bytes it came from."""

    data: bytes
    items: list[Any] = field(default_factory=list)
    includes: Optional[Includes] = None
    meta: Optional[Meta] = None
    errors: list[dict[str, Any]] = field(default_factory=list)
    matching_rules: list[MatchingRule] = field(default_factory=list)


def parse_envelope(payload: Any, raw: bytes = b"") -> V2Envelope:
    if not isinstance(payload, dict):
        raise DecodeError(data=raw, cause=TypeError(f"expected a JSON object, got {type(payload).__name__}"))
    try:
        return V2Envelope.model_validate(payload)
    except ValidationError as exc:
        raise DecodeError(data=raw, cause=exc) from exc


def decode_reply(payload: Any, raw: bytes) -> Reply:
    """Decode a v2 envelope without projecting ``data`` onto a model."""
    envelope = parse_envelope(payload, raw)
    return Reply(
        data=raw,
        items=envelope.data_items(),
        includes=envelope.includes,
        meta=envelope.meta,
        errors=envelope.errors,
        matching_rules=envelope.matching_rules,
    )


class Query(ABC, Generic[ReplyT]):
    """One REST call returning one decoded reply."""

    def __init__(self, request: Request) -> None:
        self.request = request

    def build_request(self) -> Request:
        """Frozen copy of the request for a single call."""
        return self.request.snapshot()

    @abstractmethod
    def decode(self, body: Any, raw: bytes) -> ReplyT:
        """Turn the parsed body into this query's reply type."""

    def after_reply(self, reply: ReplyT) -> None:
        pass

    async def invoke(self, client: "Client") -> ReplyT:
        request = self.build_request()
        with RequestLogger.bind(level=client.config.LOG_LEVEL):
            body, raw = await client.call_json(request)
            try:
                reply = self.decode(body, raw)
            except DecodeError:
                raise
            except (ValidationError, TypeError, ValueError, KeyError) as exc:
                LOGGER.debug("Decoding %r failed: %s", self, exc)
                raise DecodeError(data=raw, cause=exc) from exc
        self.after_reply(reply)
        return reply

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.request.http_method} {self.request.method})"


class PaginatedQuery(Query[ReplyT]):
    """Query whose successive invocations walk through result pages."""

    PAGE_PARAM: ClassVar[str] = "pagination_token"

    def __init__(self, request: Request) -> None:
        super().__init__(request)
        self.cursor = PaginationCursor()

    def build_request(self) -> Request:
        request = super().build_request()
        self.cursor.apply(request.params, self.PAGE_PARAM)
        return request

    def next_token(self, reply: ReplyT) -> Optional[str]:
        meta = getattr(reply, "meta", None)
        return meta.next_token if meta is not None else None

    def after_reply(self, reply: ReplyT) -> None:
        self.cursor.update(self.next_token(reply))

    def has_more_pages(self) -> bool:
        """True until an invocation returned no continuation token."""
        return self.cursor.has_more_pages()

    def reset_page_token(self) -> None:
        self.cursor.reset_page_token()


class StreamingQuery(ABC, Generic[MessageT]):
    """A request answered by an unbounded newline-delimited JSON stream."""

    def __init__(self, request: Request, callback: Optional[MessageCallback] = None) -> None:
        self.request = request
        self.callback = callback

    def build_request(self) -> Request:
        return self.request.snapshot()

    @abstractmethod
    def decode_message(self, payload: dict[str, Any], raw: bytes) -> MessageT:
        """Decode one data message into the payload placed in each Envelope."""

    def wrap_callback(self, callback: MessageCallback) -> MessageCallback:
        return callback

    async def stream(
        self,
        client: "Client",
        callback: Optional[MessageCallback] = None,
        *,
        on_error: Optional[ErrorCallback] = None,
        cancel: Optional[asyncio.Event] = None,
        timeout: Optional[float] = None,
    ) -> StreamResult:
        """Deliver each message to ``callback`` (or the one bound at construction)."""
        callback = callback or self.callback
        if callback is None:
            raise ValueError(f"{self!r} has no stream callback")
        request = self.build_request()
        consumer: StreamConsumer[MessageT] = StreamConsumer(
            lambda: client.open_stream(request),
            decode=self.decode_message,
            max_frame_bytes=client.config.STREAM_MAX_FRAME_BYTES,
            name=request.method,
        )
        with RequestLogger.bind(level=client.config.LOG_LEVEL):
            return await consumer.run(
                self.wrap_callback(callback), on_error=on_error, cancel=cancel, timeout=timeout
            )

    async def invoke(self, client: "Client", **kwargs: Any) -> StreamResult:
        return await self.stream(client, **kwargs)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.request.http_method} {self.request.method})"


async def fetch_all_pages(
    query: PaginatedQuery[ReplyT],
    client: "Client",
    *,
    max_pages: Optional[int] = None,
) -> AsyncIterator[ReplyT]:
    """Yield replies until the query runs out of pages or ``max_pages`` is hit.

    Starts from wherever the query's cursor currently is; call
    ``reset_page_token()`` first to restart from the beginning.
    """
    pages = 0
    while query.has_more_pages():
        if max_pages is not None and pages >= max_pages:
            return
        reply = await query.invoke(client)
        pages += 1
        LOGGER.debug("Fetched page %d of %r", pages, query)
        yield reply


async def stream_until_stop(
    query: StreamingQuery[Any],
    client: "Client",
    callback: MessageCallback,
    *,
    on_error: Optional[ErrorCallback] = None,
    cancel: Optional[asyncio.Event] = None,
    timeout: Optional[float] = None,
) -> StreamResult:
    """Run ``query`` once, delivering to ``callback`` until it returns STOP."""
    return await query.stream(client, callback, on_error=on_error, cancel=cancel, timeout=timeout)
