"""Tests for optional-field selections."""

from __future__ import annotations

from twitter_client.queries.fields import (
    CredentialsFields,
    Expansions,
    MediaFields,
    PlaceFields,
    PollFields,
    TweetFields,
    UserFields,
    apply_fields,
)
from twitter_client.transport.request import Params


def test_labels() -> None:
    assert TweetFields().label() == "tweet.fields"
    assert UserFields().label() == "user.fields"
    assert MediaFields().label() == "media.fields"
    assert PollFields().label() == "poll.fields"
    assert PlaceFields().label() == "place.fields"
    assert Expansions().label() == "expansions"


def test_values_list_only_selected_flags() -> None:
    assert TweetFields().values() == []
    assert TweetFields(public_metrics=True, lang=True).values() == ["lang", "public_metrics"]
    assert PollFields(voting_status=True).values() == ["voting_status"]


def test_expansions_use_dotted_wire_names() -> None:
    expansions = Expansions(media_keys=True, mention_username=True, referenced_author_id=True)
    assert expansions.values() == [
        "attachments.media_keys",
        "entities.mentions.username",
        "referenced_tweets.id.author_id",
    ]


def test_apply_fields_skips_empty_and_missing_selections() -> None:
    params = Params()
    apply_fields(params, [TweetFields(), None, UserFields(url=True)])

    assert "tweet.fields" not in params
    assert params.get_one("user.fields") == "url"


def test_credentials_fields_write_one_parameter_per_flag() -> None:
    params = Params()
    CredentialsFields(include_entities=True).apply(params)

    assert dict(params.items_flat()) == {
        "include_email": "false",
        "include_entities": "true",
        "skip_status": "false",
    }
    assert CredentialsFields(skip_status=True).values() == ["skip_status"]
