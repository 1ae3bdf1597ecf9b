"""Response shapes (pydantic models) for v2 and v1.1 replies."""

from .legacy import AccountCredentials, LegacyTweet, LegacyUser
from .tweets import (
    Includes,
    MatchingRule,
    Media,
    Meta,
    Place,
    Poll,
    Rule,
    Tweet,
    User,
    V2Envelope,
)

__all__ = [
    "AccountCredentials",
    "LegacyTweet",
    "LegacyUser",
    "Includes",
    "MatchingRule",
    "Media",
    "Meta",
    "Place",
    "Poll",
    "Rule",
    "Tweet",
    "User",
    "V2Envelope",
]
