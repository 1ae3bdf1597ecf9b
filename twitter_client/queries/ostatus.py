"""Status (tweet) queries against the v1.1 API.

Replies are projected onto the v2 ``Tweet`` shape; the optional fields
selected in ``TweetFields`` decide which v2 attributes are filled.
Mutating queries require user-context authorization (see ``Client(authorize=...)``).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Optional, Sequence

from ..models.legacy import LegacyTweet
from ..transport.request import Request
from .base import PaginatedQuery, Query
from .fields import TweetFields
from .tweets import TweetsReply


@dataclass
class Options:
    optional: Optional[TweetFields] = None


@dataclass
class CreateOpts:
    in_reply_to: Optional[str] = None
    auto_populate_reply: bool = False
    auto_exclude_mentions: Sequence[str] = ()
    optional: Optional[TweetFields] = None


@dataclass
class TimelineOpts:
    """Timeline options. ``max_results`` is capped at 200 by the server."""

    by_id: bool = False
    max_results: int = 0
    exclude_replies: bool = False
    include_retweets: bool = False
    include_entities: bool = False
    since_id: Optional[str] = None
    until_id: Optional[str] = None
    optional: Optional[TweetFields] = None


def _copy_fields(selection: Optional[TweetFields]) -> TweetFields:
    return replace(selection) if selection is not None else TweetFields()


class StatusQuery(Query[TweetsReply]):
    """Single-status reply (create, delete, retweet, like, ...)."""

    def __init__(self, request: Request, optional: Optional[TweetFields] = None) -> None:
        super().__init__(request)
        self.optional = _copy_fields(optional)

    def decode(self, body: Any, raw: bytes) -> TweetsReply:
        status = LegacyTweet.model_validate(body)
        return TweetsReply(data=raw, items=[body], tweets=[status.to_v2(self.optional)])


class TimelineQuery(Query[TweetsReply]):
    def __init__(self, request: Request, optional: Optional[TweetFields] = None) -> None:
        super().__init__(request)
        self.optional = _copy_fields(optional)

    def decode(self, body: Any, raw: bytes) -> TweetsReply:
        if not isinstance(body, list):
            raise TypeError(f"expected a JSON array of statuses, got {type(body).__name__}")
        statuses = [LegacyTweet.model_validate(item) for item in body]
        return TweetsReply(data=raw, items=list(body), tweets=[s.to_v2(self.optional) for s in statuses])


@dataclass
class IDsReply:
    data: bytes
    ids: list[str] = field(default_factory=list)
    next_cursor: Optional[str] = None


class RetweetersQuery(PaginatedQuery[IDsReply]):
    """IDs of users who retweeted a status, paginated by ``cursor``."""

    PAGE_PARAM = "cursor"

    def decode(self, body: Any, raw: bytes) -> IDsReply:
        if not isinstance(body, dict):
            raise TypeError(f"expected a JSON object, got {type(body).__name__}")
        return IDsReply(
            data=raw,
            ids=[str(value) for value in body.get("ids") or []],
            next_cursor=body.get("next_cursor_str"),
        )

    def next_token(self, reply: IDsReply) -> Optional[str]:
        # v1.1 reports the last page as cursor "0".
        if reply.next_cursor in (None, "", "0"):
            return None
        return reply.next_cursor


def create(text: str, opts: Optional[CreateOpts] = None) -> StatusQuery:
    """Post a status update.

    API: 1.1/statuses/update.json
    """
    request = Request(method="1.1/statuses/update.json", http_method="POST")
    request.params.set("status", text)
    request.params.set("trim_user", "true")
    request.params.set("tweet_mode", "extended")
    optional = None
    if opts is not None:
        if opts.in_reply_to:
            request.params.set("in_reply_to_status_id", opts.in_reply_to)
        if opts.auto_populate_reply:
            request.params.set("auto_populate_reply_metadata", "true")
            if opts.auto_exclude_mentions:
                request.params.add("exclude_reply_user_ids", *opts.auto_exclude_mentions)
        optional = opts.optional
    request.set_body_to_params()
    return StatusQuery(request, optional)


def _mod_query(path: str, status_id: str, opts: Optional[Options]) -> StatusQuery:
    request = Request(method=f"{path}/{status_id}.json", http_method="POST")
    request.params.set("trim_user", "true")
    return StatusQuery(request, opts.optional if opts is not None else None)


def delete(status_id: str, opts: Optional[Options] = None) -> StatusQuery:
    """API: 1.1/statuses/destroy/:id.json"""
    return _mod_query("1.1/statuses/destroy", status_id, opts)


def retweet(status_id: str, opts: Optional[Options] = None) -> StatusQuery:
    """API: 1.1/statuses/retweet/:id.json"""
    return _mod_query("1.1/statuses/retweet", status_id, opts)


def unretweet(status_id: str, opts: Optional[Options] = None) -> StatusQuery:
    """API: 1.1/statuses/unretweet/:id.json"""
    return _mod_query("1.1/statuses/unretweet", status_id, opts)


def _like_query(path: str, status_id: str, opts: Optional[Options]) -> StatusQuery:
    request = Request(method=f"{path}.json", http_method="POST")
    request.params.set("id", status_id)
    optional = opts.optional if opts is not None else None
    entities = bool(optional is not None and optional.entities)
    request.params.set("include_entities", "true" if entities else "false")
    return StatusQuery(request, optional)


def like(status_id: str, opts: Optional[Options] = None) -> StatusQuery:
    """API: 1.1/favorites/create.json"""
    return _like_query("1.1/favorites/create", status_id, opts)


def unlike(status_id: str, opts: Optional[Options] = None) -> StatusQuery:
    """API: 1.1/favorites/destroy.json"""
    return _like_query("1.1/favorites/destroy", status_id, opts)


def _timeline_query(key: str, kind: str, opts: Optional[TimelineOpts]) -> TimelineQuery:
    request = Request(method=f"1.1/statuses/{kind}_timeline.json")
    key_field = "user_id" if opts is not None and opts.by_id else "screen_name"
    request.params.set(key_field, key)
    request.params.set("trim_user", "true")
    request.params.set("tweet_mode", "extended")
    if opts is None:
        return TimelineQuery(request)

    optional = _copy_fields(opts.optional)
    if opts.max_results > 0:
        request.params.set("count", str(opts.max_results))
    if opts.exclude_replies:
        request.params.set("exclude_replies", "true")
    if opts.include_retweets:
        request.params.set("include_rts", "true")
    if opts.include_entities:
        request.params.set("include_entities", "true")
        optional.entities = True
    if opts.since_id:
        request.params.set("since_id", opts.since_id)
    if opts.until_id:
        request.params.set("max_id", opts.until_id)
    return TimelineQuery(request, optional)


def user_timeline(key: str, opts: Optional[TimelineOpts] = None) -> TimelineQuery:
    """Statuses posted by a user (``key`` is a screen name unless ``by_id``).

    API: 1.1/statuses/user_timeline.json
    """
    return _timeline_query(key, "user", opts)


def home_timeline(key: str, opts: Optional[TimelineOpts] = None) -> TimelineQuery:
    """API: 1.1/statuses/home_timeline.json (user context)"""
    return _timeline_query(key, "home", opts)


def mentions_timeline(key: str, opts: Optional[TimelineOpts] = None) -> TimelineQuery:
    """API: 1.1/statuses/mentions_timeline.json (user context)"""
    return _timeline_query(key, "mentions", opts)


def retweeters(status_id: str, *, count: int = 0) -> RetweetersQuery:
    """IDs of users who retweeted ``status_id``.

    API: 1.1/statuses/retweeters/ids.json
    """
    request = Request(method="1.1/statuses/retweeters/ids.json")
    request.params.set("id", status_id)
    request.params.set("stringify_ids", "true")
    if count > 0:
        request.params.set("count", str(count))
    return RetweetersQuery(request)
