"""Optional-field selections.

Every selection is a small dataclass of boolean flags. ``label()`` names the
request parameter and ``values()`` lists the wire names of the selected flags;
``apply()`` writes the selection into outgoing parameters. Variants whose
serialization differs (``CredentialsFields`` uses one parameter per flag)
override ``apply``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields as dataclass_fields
from typing import Any, ClassVar, Iterable, Optional

from ..transport.request import Params


def _wire(name: str) -> Any:
    return field(default=False, metadata={"wire": name})


@dataclass
class Fields:
    LABEL: ClassVar[str] = ""

    def label(self) -> str:
        return self.LABEL

    def values(self) -> list[str]:
        selected = []
        for item in dataclass_fields(self):
            if getattr(self, item.name):
                selected.append(item.metadata.get("wire", item.name))
        return selected

    def apply(self, params: Params) -> None:
        values = self.values()
        if values:
            params.set(self.label(), ",".join(values))


@dataclass
class TweetFields(Fields):
    LABEL: ClassVar[str] = "tweet.fields"

    attachments: bool = False
    author_id: bool = False
    context_annotations: bool = False
    conversation_id: bool = False
    created_at: bool = False
    entities: bool = False
    geo: bool = False
    in_reply_to_user_id: bool = False
    lang: bool = False
    non_public_metrics: bool = False
    organic_metrics: bool = False
    possibly_sensitive: bool = False
    promoted_metrics: bool = False
    public_metrics: bool = False
    referenced_tweets: bool = False
    reply_settings: bool = False
    source: bool = False
    withheld: bool = False


@dataclass
class UserFields(Fields):
    LABEL: ClassVar[str] = "user.fields"

    created_at: bool = False
    description: bool = False
    entities: bool = False
    location: bool = False
    pinned_tweet_id: bool = False
    profile_image_url: bool = False
    protected: bool = False
    public_metrics: bool = False
    url: bool = False
    verified: bool = False
    withheld: bool = False


@dataclass
class MediaFields(Fields):
    LABEL: ClassVar[str] = "media.fields"

    alt_text: bool = False
    duration_ms: bool = False
    height: bool = False
    non_public_metrics: bool = False
    organic_metrics: bool = False
    preview_image_url: bool = False
    promoted_metrics: bool = False
    public_metrics: bool = False
    url: bool = False
    width: bool = False


@dataclass
class PollFields(Fields):
    LABEL: ClassVar[str] = "poll.fields"

    duration_minutes: bool = False
    end_datetime: bool = False
    voting_status: bool = False


@dataclass
class PlaceFields(Fields):
    LABEL: ClassVar[str] = "place.fields"

    contained_within: bool = False
    country: bool = False
    country_code: bool = False
    geo: bool = False
    name: bool = False
    place_type: bool = False


@dataclass
class Expansions(Fields):
    """Object expansions (``expansions=author_id,referenced_tweets.id``)."""

    LABEL: ClassVar[str] = "expansions"

    author_id: bool = _wire("author_id")
    referenced_tweet_id: bool = _wire("referenced_tweets.id")
    in_reply_to: bool = _wire("in_reply_to_user_id")
    media_keys: bool = _wire("attachments.media_keys")
    poll_id: bool = _wire("attachments.poll_ids")
    place_id: bool = _wire("geo.place_id")
    mention_username: bool = _wire("entities.mentions.username")
    referenced_author_id: bool = _wire("referenced_tweets.id.author_id")
    pinned_tweet_id: bool = _wire("pinned_tweet_id")
    owner_id: bool = _wire("owner_id")


@dataclass
class CredentialsFields(Fields):
    """Flags for 1.1/account/verify_credentials.json; each is its own parameter."""

    LABEL: ClassVar[str] = "verify_credentials"

    include_entities: bool = False
    skip_status: bool = False
    include_email: bool = False

    def apply(self, params: Params) -> None:
        for item in dataclass_fields(self):
            params.set(item.name, "true" if getattr(self, item.name) else "false")


def apply_fields(params: Params, selections: Iterable[Optional[Fields]]) -> None:
    """Write every non-empty selection into ``params``."""
    for selection in selections:
        if selection is not None:
            selection.apply(params)
