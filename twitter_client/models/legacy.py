"""v1.1 response shapes and their conversion to v2 models."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from pydantic import BaseModel, ConfigDict

from .tweets import Tweet

if TYPE_CHECKING:
    from ..queries.fields import TweetFields


class LegacyUser(BaseModel):
    model_config = ConfigDict(extra="allow")

    id_str: str
    screen_name: str = ""
    name: str = ""


class LegacyTweet(BaseModel):
    model_config = ConfigDict(extra="allow")

    id_str: str
    created_at: Optional[str] = None
    full_text: Optional[str] = None
    text: Optional[str] = None
    lang: Optional[str] = None
    source: Optional[str] = None
    possibly_sensitive: Optional[bool] = None
    in_reply_to_user_id_str: Optional[str] = None
    in_reply_to_status_id_str: Optional[str] = None
    quoted_status_id_str: Optional[str] = None
    user: Optional[LegacyUser] = None
    entities: Optional[dict[str, Any]] = None
    retweet_count: int = 0
    favorite_count: int = 0
    reply_count: Optional[int] = None
    quote_count: Optional[int] = None
    retweeted_status: Optional["LegacyTweet"] = None

    def to_v2(self, fields: Optional["TweetFields"] = None) -> Tweet:
        """Project a v1.1 status onto the v2 Tweet shape.

        Optional v2 fields are only populated when selected in ``fields``,
        mirroring what the v2 endpoint would have returned.
        """
        tweet = Tweet(id=self.id_str, text=self.full_text or self.text or "")
        if fields is None:
            return tweet
        user_id = self.user.id_str if self.user is not None else None
        if fields.author_id:
            tweet.author_id = user_id
        if fields.created_at:
            tweet.created_at = self.created_at
        if fields.lang:
            tweet.lang = self.lang
        if fields.source:
            tweet.source = self.source
        if fields.possibly_sensitive:
            tweet.possibly_sensitive = self.possibly_sensitive
        if fields.in_reply_to_user_id:
            tweet.in_reply_to_user_id = self.in_reply_to_user_id_str
        if fields.entities:
            tweet.entities = self.entities
        if fields.public_metrics:
            metrics = {"retweet_count": self.retweet_count, "like_count": self.favorite_count}
            if self.reply_count is not None:
                metrics["reply_count"] = self.reply_count
            if self.quote_count is not None:
                metrics["quote_count"] = self.quote_count
            tweet.public_metrics = metrics
        if fields.referenced_tweets:
            refs: list[dict[str, Any]] = []
            if self.retweeted_status is not None:
                refs.append({"type": "retweeted", "id": self.retweeted_status.id_str})
            if self.quoted_status_id_str:
                refs.append({"type": "quoted", "id": self.quoted_status_id_str})
            if self.in_reply_to_status_id_str:
                refs.append({"type": "replied_to", "id": self.in_reply_to_status_id_str})
            tweet.referenced_tweets = refs or None
        return tweet


class AccountCredentials(BaseModel):
    """Reply of 1.1/account/verify_credentials.json (unlisted fields are kept)."""

    model_config = ConfigDict(extra="allow")

    id_str: str
    screen_name: str = ""
    name: str = ""
    description: Optional[str] = None
    location: Optional[str] = None
    created_at: Optional[str] = None
    email: Optional[str] = None
    protected: bool = False
    verified: bool = False
    followers_count: int = 0
    friends_count: int = 0
    statuses_count: int = 0
    favourites_count: int = 0
    listed_count: int = 0
    status: Optional[LegacyTweet] = None
    entities: Optional[dict[str, Any]] = None
