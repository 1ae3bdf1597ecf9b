"""Tweet queries against the v2 API.

- ``lookup``: 2/tweets
- ``search_recent``: 2/tweets/search/recent (paginated by ``next_token``)
- ``sample_stream``: 2/tweets/sample/stream
- ``search_stream``: 2/tweets/search/stream (filtered by the stream rules)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from ..models.tweets import Tweet
from ..streaming.consumer import CONTINUE, STOP, Envelope, MessageCallback, _call
from ..transport.request import Request
from .base import PaginatedQuery, Query, Reply, StreamingQuery, parse_envelope
from .fields import Expansions, Fields, MediaFields, PlaceFields, PollFields, TweetFields, UserFields, apply_fields


@dataclass
class TweetsReply(Reply):
    tweets: list[Tweet] = field(default_factory=list)


def decode_tweets(payload: Any, raw: bytes) -> TweetsReply:
    envelope = parse_envelope(payload, raw)
    items = envelope.data_items()
    return TweetsReply(
        data=raw,
        items=items,
        includes=envelope.includes,
        meta=envelope.meta,
        errors=envelope.errors,
        matching_rules=envelope.matching_rules,
        tweets=[Tweet.model_validate(item) for item in items],
    )


@dataclass
class _FieldOpts:
    tweet_fields: Optional[TweetFields] = None
    user_fields: Optional[UserFields] = None
    media_fields: Optional[MediaFields] = None
    poll_fields: Optional[PollFields] = None
    place_fields: Optional[PlaceFields] = None
    expansions: Optional[Expansions] = None
    optional: Sequence[Fields] = ()

    def selections(self) -> list[Optional[Fields]]:
        return [
            self.tweet_fields,
            self.user_fields,
            self.media_fields,
            self.poll_fields,
            self.place_fields,
            self.expansions,
            *self.optional,
        ]


@dataclass
class LookupOpts(_FieldOpts):
    pass


@dataclass
class SearchOpts(_FieldOpts):
    """Options for recent search.

    ``max_results`` is clamped by the server to 10..100; zero leaves it unset.
    Times are RFC 3339 strings.
    """

    max_results: int = 0
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    since_id: Optional[str] = None
    until_id: Optional[str] = None
    sort_order: Optional[str] = None


@dataclass
class StreamOpts(_FieldOpts):
    """Options for streaming endpoints.

    ``max_results`` > 0 stops the stream after that many tweets have been
    delivered to the callback.
    """

    max_results: int = 0
    backfill_minutes: int = 0


class TweetsQuery(Query[TweetsReply]):
    def decode(self, body: Any, raw: bytes) -> TweetsReply:
        return decode_tweets(body, raw)


class SearchQuery(PaginatedQuery[TweetsReply]):
    PAGE_PARAM = "next_token"

    def decode(self, body: Any, raw: bytes) -> TweetsReply:
        return decode_tweets(body, raw)


class TweetStream(StreamingQuery[TweetsReply]):
    """Streaming tweets, one ``TweetsReply`` per message."""

    def __init__(
        self,
        request: Request,
        callback: Optional[MessageCallback] = None,
        *,
        max_results: int = 0,
    ) -> None:
        super().__init__(request, callback)
        self.max_results = max_results

    def decode_message(self, payload: dict[str, Any], raw: bytes) -> TweetsReply:
        return decode_tweets(payload, raw)

    def wrap_callback(self, callback: MessageCallback) -> MessageCallback:
        if self.max_results <= 0:
            return callback
        limit = self.max_results
        delivered = 0

        async def limited(envelope: Envelope[TweetsReply]) -> Any:
            nonlocal delivered
            outcome = await _call(callback, envelope)
            delivered += len(envelope.payload.tweets)
            if outcome in (None, CONTINUE) and delivered >= limit:
                return STOP
            return outcome

        return limited


def lookup(ids: Sequence[str], opts: Optional[LookupOpts] = None) -> TweetsQuery:
    """Look up tweets by ID.

    API: 2/tweets
    """
    request = Request(method="2/tweets")
    request.params.set("ids", ",".join(ids))
    if opts is not None:
        apply_fields(request.params, opts.selections())
    return TweetsQuery(request)


def search_recent(query: str, opts: Optional[SearchOpts] = None) -> SearchQuery:
    """Search tweets from the last seven days.

    API: 2/tweets/search/recent
    """
    request = Request(method="2/tweets/search/recent")
    request.params.set("query", query)
    if opts is not None:
        if opts.max_results > 0:
            request.params.set("max_results", str(opts.max_results))
        for name in ("start_time", "end_time", "since_id", "until_id", "sort_order"):
            value = getattr(opts, name)
            if value:
                request.params.set(name, value)
        apply_fields(request.params, opts.selections())
    return SearchQuery(request)


def _stream_request(method: str, opts: Optional[StreamOpts]) -> Request:
    request = Request(method=method)
    if opts is not None:
        if opts.backfill_minutes > 0:
            request.params.set("backfill_minutes", str(opts.backfill_minutes))
        apply_fields(request.params, opts.selections())
    return request


def sample_stream(callback: Optional[MessageCallback] = None, opts: Optional[StreamOpts] = None) -> TweetStream:
    """Stream a ~1% sample of public tweets.

    API: 2/tweets/sample/stream
    """
    return TweetStream(
        _stream_request("2/tweets/sample/stream", opts),
        callback,
        max_results=opts.max_results if opts is not None else 0,
    )


def search_stream(callback: Optional[MessageCallback] = None, opts: Optional[StreamOpts] = None) -> TweetStream:
    """Stream tweets matching the active stream rules (see ``queries.rules``).

    API: 2/tweets/search/stream
    """
    return TweetStream(
        _stream_request("2/tweets/search/stream", opts),
        callback,
        max_results=opts.max_results if opts is not None else 0,
    )
