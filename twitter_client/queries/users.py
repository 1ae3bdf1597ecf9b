"""User list queries against the v2 API (paginated by ``pagination_token``)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from ..models.tweets import User
from ..transport.request import Request
from .base import PaginatedQuery, Query, Reply, parse_envelope
from .fields import Expansions, Fields, TweetFields, UserFields, apply_fields


@dataclass
class UsersReply(Reply):
    users: list[User] = field(default_factory=list)


def decode_users(payload: Any, raw: bytes) -> UsersReply:
    envelope = parse_envelope(payload, raw)
    items = envelope.data_items()
    return UsersReply(
        data=raw,
        items=items,
        includes=envelope.includes,
        meta=envelope.meta,
        errors=envelope.errors,
        users=[User.model_validate(item) for item in items],
    )


@dataclass
class ListOpts:
    max_results: int = 0
    user_fields: Optional[UserFields] = None
    tweet_fields: Optional[TweetFields] = None
    expansions: Optional[Expansions] = None
    optional: Sequence[Fields] = ()


class UsersQuery(Query[UsersReply]):
    def decode(self, body: Any, raw: bytes) -> UsersReply:
        return decode_users(body, raw)


class UserListQuery(PaginatedQuery[UsersReply]):
    PAGE_PARAM = "pagination_token"

    def decode(self, body: Any, raw: bytes) -> UsersReply:
        return decode_users(body, raw)


def _list_query(method: str, opts: Optional[ListOpts]) -> UserListQuery:
    request = Request(method=method)
    if opts is not None:
        if opts.max_results > 0:
            request.params.set("max_results", str(opts.max_results))
        apply_fields(
            request.params,
            [opts.user_fields, opts.tweet_fields, opts.expansions, *opts.optional],
        )
    return UserListQuery(request)


def lookup(ids: Sequence[str], opts: Optional[ListOpts] = None) -> UsersQuery:
    """Look up users by ID.

    API: 2/users
    """
    request = Request(method="2/users")
    request.params.set("ids", ",".join(ids))
    if opts is not None:
        apply_fields(request.params, [opts.user_fields, opts.tweet_fields, opts.expansions, *opts.optional])
    return UsersQuery(request)


def followers(user_id: str, opts: Optional[ListOpts] = None) -> UserListQuery:
    """API: 2/users/:id/followers"""
    return _list_query(f"2/users/{user_id}/followers", opts)


def following(user_id: str, opts: Optional[ListOpts] = None) -> UserListQuery:
    """API: 2/users/:id/following"""
    return _list_query(f"2/users/{user_id}/following", opts)
