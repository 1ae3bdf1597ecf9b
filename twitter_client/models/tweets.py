"""Response shapes for the v2 API.

The models are permissive: unknown fields are kept (``extra="allow"``) so a
schema addition upstream never breaks decoding, while a shape mismatch on the
fields we do declare is reported as a validation error.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class _APIModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class Tweet(_APIModel):
    id: str
    text: str = ""
    author_id: Optional[str] = None
    conversation_id: Optional[str] = None
    created_at: Optional[str] = None
    in_reply_to_user_id: Optional[str] = None
    lang: Optional[str] = None
    source: Optional[str] = None
    possibly_sensitive: Optional[bool] = None
    entities: Optional[dict[str, Any]] = None
    attachments: Optional[dict[str, Any]] = None
    public_metrics: Optional[dict[str, int]] = None
    referenced_tweets: Optional[list[dict[str, Any]]] = None


class User(_APIModel):
    id: str
    name: str = ""
    username: str = ""
    created_at: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    pinned_tweet_id: Optional[str] = None
    profile_image_url: Optional[str] = None
    protected: Optional[bool] = None
    verified: Optional[bool] = None
    url: Optional[str] = None
    entities: Optional[dict[str, Any]] = None
    public_metrics: Optional[dict[str, int]] = None


class Media(_APIModel):
    media_key: str
    type: str = ""
    url: Optional[str] = None
    preview_image_url: Optional[str] = None
    duration_ms: Optional[int] = None
    height: Optional[int] = None
    width: Optional[int] = None
    alt_text: Optional[str] = None
    public_metrics: Optional[dict[str, int]] = None


class Place(_APIModel):
    id: str
    full_name: str = ""
    country: Optional[str] = None
    country_code: Optional[str] = None
    name: Optional[str] = None
    place_type: Optional[str] = None
    geo: Optional[dict[str, Any]] = None


class Poll(_APIModel):
    id: str
    options: list[dict[str, Any]] = Field(default_factory=list)
    duration_minutes: Optional[int] = None
    end_datetime: Optional[str] = None
    voting_status: Optional[str] = None


class Includes(_APIModel):
    tweets: list[Tweet] = Field(default_factory=list)
    users: list[User] = Field(default_factory=list)
    media: list[Media] = Field(default_factory=list)
    places: list[Place] = Field(default_factory=list)
    polls: list[Poll] = Field(default_factory=list)


class Meta(_APIModel):
    result_count: Optional[int] = None
    next_token: Optional[str] = None
    previous_token: Optional[str] = None
    newest_id: Optional[str] = None
    oldest_id: Optional[str] = None
    sent: Optional[str] = None
    summary: Optional[dict[str, int]] = None


class MatchingRule(_APIModel):
    id: str
    tag: Optional[str] = None


class Rule(_APIModel):
    value: str
    id: Optional[str] = None
    tag: Optional[str] = None


class V2Envelope(_APIModel):
    """Top level of every v2 reply and stream message."""

    data: Any = None
    includes: Optional[Includes] = None
    meta: Optional[Meta] = None
    errors: list[dict[str, Any]] = Field(default_factory=list)
    matching_rules: list[MatchingRule] = Field(default_factory=list)

    def data_items(self) -> list[Any]:
        """``data`` normalized to a list (single-object replies become one item)."""
        if self.data is None:
            return []
        if isinstance(self.data, list):
            return self.data
        return [self.data]
