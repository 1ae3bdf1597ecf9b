"""Endpoint query builders.

Each endpoint module exposes constructor functions returning query values:

- tweets: lookup, search_recent, sample_stream, search_stream (v2)
- users: lookup, followers, following (v2)
- rules: get, update (v2 filtered-stream rules)
- ostatus: statuses and timelines (v1.1)
- oaccount: verify_credentials (v1.1)
"""

from . import oaccount, ostatus, rules, tweets, users
from .base import (
    PaginatedQuery,
    Query,
    Reply,
    StreamingQuery,
    decode_reply,
    fetch_all_pages,
    stream_until_stop,
)
from .fields import (
    CredentialsFields,
    Expansions,
    Fields,
    MediaFields,
    PlaceFields,
    PollFields,
    TweetFields,
    UserFields,
)
from .pagination import PaginationCursor

__all__ = [
    "oaccount",
    "ostatus",
    "rules",
    "tweets",
    "users",
    "PaginatedQuery",
    "Query",
    "Reply",
    "StreamingQuery",
    "decode_reply",
    "fetch_all_pages",
    "stream_until_stop",
    "CredentialsFields",
    "Expansions",
    "Fields",
    "MediaFields",
    "PlaceFields",
    "PollFields",
    "TweetFields",
    "UserFields",
    "PaginationCursor",
]
