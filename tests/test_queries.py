"""Tests for endpoint query builders and reply decoding."""

from __future__ import annotations

import json
from urllib.parse import parse_qs

import pytest

from twitter_client.core.errors import DecodeError
from twitter_client.queries import oaccount, ostatus, rules, tweets, users
from twitter_client.queries.base import decode_reply
from twitter_client.queries.fields import CredentialsFields, Expansions, TweetFields, UserFields
from twitter_client.streaming.consumer import CONTINUE, STOP, Envelope

from conftest import FakeClient

LEGACY_STATUS = {
    "id_str": "1001",
    "created_at": "Wed Oct 10 20:19:24 +0000 2018",
    "full_text": "hello from v1.1",
    "lang": "en",
    "favorite_count": 3,
    "retweet_count": 2,
    "in_reply_to_status_id_str": "1000",
    "user": {"id_str": "42"},
    "entities": {"hashtags": []},
}


# -----------------------------------------------------------------------------
# v2 tweets
# -----------------------------------------------------------------------------

def test_lookup_request_carries_ids_and_fields() -> None:
    query = tweets.lookup(
        ["1", "2"],
        tweets.LookupOpts(
            tweet_fields=TweetFields(author_id=True, created_at=True),
            expansions=Expansions(author_id=True, referenced_tweet_id=True),
        ),
    )

    assert query.request.method == "2/tweets"
    assert query.request.params.get_one("ids") == "1,2"
    assert query.request.params.get_one("tweet.fields") == "author_id,created_at"
    assert query.request.params.get_one("expansions") == "author_id,referenced_tweets.id"


def test_search_recent_sets_optional_parameters() -> None:
    opts = tweets.SearchOpts(max_results=50, since_id="5", start_time="2021-01-01T00:00:00Z")
    query = tweets.search_recent("from:jack", opts)

    params = dict(query.request.params.items_flat())
    assert params == {
        "query": "from:jack",
        "max_results": "50",
        "since_id": "5",
        "start_time": "2021-01-01T00:00:00Z",
    }


@pytest.mark.asyncio
async def test_lookup_decodes_tweets_and_includes() -> None:
    body = {
        "data": [{"id": "1", "text": "hi", "author_id": "9", "edit_history_tweet_ids": ["1"]}],
        "includes": {"users": [{"id": "9", "name": "Nine", "username": "nine"}]},
        "errors": [{"title": "Not Found Error", "resource_id": "2"}],
    }
    reply = await tweets.lookup(["1", "2"]).invoke(FakeClient([body]))

    assert reply.tweets[0].author_id == "9"
    assert reply.tweets[0].model_extra == {"edit_history_tweet_ids": ["1"]}
    assert reply.includes is not None and reply.includes.users[0].username == "nine"
    assert reply.errors[0]["resource_id"] == "2"
    assert json.loads(reply.data) == body


@pytest.mark.asyncio
async def test_shape_mismatch_is_a_decode_error() -> None:
    with pytest.raises(DecodeError) as excinfo:
        await tweets.lookup(["1"]).invoke(FakeClient([{"data": [{"text": "no id"}]}]))
    assert str(excinfo.value).startswith("decoding response body")
    assert excinfo.value.data


@pytest.mark.asyncio
async def test_non_object_reply_is_a_decode_error() -> None:
    with pytest.raises(DecodeError):
        await tweets.lookup(["1"]).invoke(FakeClient([["not", "an", "object"]]))


def test_decode_reply_normalizes_single_object() -> None:
    reply = decode_reply({"data": {"id": "1", "text": "x"}, "matching_rules": [{"id": "r1", "tag": "cats"}]}, b"{}")

    assert reply.items == [{"id": "1", "text": "x"}]
    assert reply.matching_rules[0].tag == "cats"
    assert reply.data == b"{}"


def test_stream_queries_target_stream_endpoints() -> None:
    sample = tweets.sample_stream(opts=tweets.StreamOpts(tweet_fields=TweetFields(lang=True)))
    search = tweets.search_stream(lambda _e: None, tweets.StreamOpts(backfill_minutes=2))

    assert sample.request.method == "2/tweets/sample/stream"
    assert sample.request.params.get_one("tweet.fields") == "lang"
    assert search.request.method == "2/tweets/search/stream"
    assert search.request.params.get_one("backfill_minutes") == "2"
    assert search.callback is not None


@pytest.mark.asyncio
async def test_stream_max_results_stops_after_limit() -> None:
    stream = tweets.search_stream(opts=tweets.StreamOpts(max_results=2))
    seen: list[str] = []

    def callback(envelope: Envelope) -> None:
        seen.extend(tweet.id for tweet in envelope.payload.tweets)

    limited = stream.wrap_callback(callback)
    outcomes = []
    for seq, tweet_id in enumerate(["a", "b", "c"]):
        payload = {"data": {"id": tweet_id, "text": ""}}
        raw = json.dumps(payload).encode()
        envelope = Envelope(payload=stream.decode_message(payload, raw), data=raw, seq=seq)
        outcomes.append(await limited(envelope))

    assert outcomes[0] is None
    assert outcomes[1] is STOP
    assert seen == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_stream_max_results_keeps_explicit_continue_semantics() -> None:
    stream = tweets.sample_stream(opts=tweets.StreamOpts(max_results=1))
    limited = stream.wrap_callback(lambda _e: CONTINUE)
    payload = {"data": {"id": "1", "text": ""}}
    envelope = Envelope(payload=stream.decode_message(payload, b""), data=b"", seq=0)

    assert await limited(envelope) is STOP


@pytest.mark.asyncio
async def test_stream_without_callback_is_rejected() -> None:
    with pytest.raises(ValueError):
        await tweets.sample_stream().stream(FakeClient([]))


# -----------------------------------------------------------------------------
# v2 users and rules
# -----------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_followers_decode_users() -> None:
    body = {"data": [{"id": "1", "name": "One", "username": "one"}], "meta": {"result_count": 1}}
    query = users.followers("77", users.ListOpts(user_fields=UserFields(created_at=True)))

    reply = await query.invoke(FakeClient([body]))

    assert query.request.method == "2/users/77/followers"
    assert query.request.params.get_one("user.fields") == "created_at"
    assert [user.username for user in reply.users] == ["one"]
    assert not query.has_more_pages()


def test_users_lookup_and_following_paths() -> None:
    assert users.lookup(["1", "2"]).request.params.get_one("ids") == "1,2"
    assert users.following("5").request.method == "2/users/5/following"


def test_rules_update_adds_body() -> None:
    query = rules.update(rules.Adds.of("cats has:images", tag="cats"), dry_run=True)

    assert query.request.http_method == "POST"
    assert query.request.content_type == "application/json"
    assert query.request.params.get_one("dry_run") == "true"
    assert json.loads(query.request.data) == {"add": [{"value": "cats has:images", "tag": "cats"}]}


def test_rules_update_deletes_body() -> None:
    query = rules.update(rules.Deletes(["r1", "r2"]))

    assert "dry_run" not in query.request.params
    assert json.loads(query.request.data) == {"delete": {"ids": ["r1", "r2"]}}


def test_rules_update_rejects_other_values() -> None:
    with pytest.raises(TypeError):
        rules.update({"add": []})  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_rules_reply_reports_summary() -> None:
    body = {
        "data": [{"id": "r1", "value": "cats", "tag": "cats"}],
        "meta": {"sent": "2021-01-01T00:00:00.000Z", "summary": {"created": 1, "not_created": 0}},
    }
    reply = await rules.get("r1").invoke(FakeClient([body]))

    assert reply.rules[0].id == "r1"
    assert reply.summary == {"created": 1, "not_created": 0}


# -----------------------------------------------------------------------------
# v1.1 statuses and account
# -----------------------------------------------------------------------------

def test_create_moves_parameters_into_form_body() -> None:
    query = ostatus.create(
        "hello world",
        ostatus.CreateOpts(in_reply_to="1000", auto_populate_reply=True, auto_exclude_mentions=["7", "8"]),
    )

    assert query.request.method == "1.1/statuses/update.json"
    assert query.request.http_method == "POST"
    assert not query.request.params
    assert query.request.content_type == "application/x-www-form-urlencoded"
    form = parse_qs(query.request.data.decode())
    assert form == {
        "auto_populate_reply_metadata": ["true"],
        "exclude_reply_user_ids": ["7,8"],
        "in_reply_to_status_id": ["1000"],
        "status": ["hello world"],
        "trim_user": ["true"],
        "tweet_mode": ["extended"],
    }


def test_modification_queries_put_id_in_path() -> None:
    assert ostatus.delete("5").request.method == "1.1/statuses/destroy/5.json"
    assert ostatus.retweet("5").request.method == "1.1/statuses/retweet/5.json"
    assert ostatus.unretweet("5").request.method == "1.1/statuses/unretweet/5.json"
    assert ostatus.delete("5").request.params.get_one("trim_user") == "true"


def test_like_reports_entities_choice() -> None:
    plain = ostatus.like("5")
    with_entities = ostatus.unlike("5", ostatus.Options(optional=TweetFields(entities=True)))

    assert plain.request.method == "1.1/favorites/create.json"
    assert plain.request.params.get_one("include_entities") == "false"
    assert with_entities.request.method == "1.1/favorites/destroy.json"
    assert with_entities.request.params.get_one("include_entities") == "true"


def test_timeline_parameters() -> None:
    query = ostatus.user_timeline(
        "123",
        ostatus.TimelineOpts(by_id=True, max_results=50, include_retweets=True, until_id="900", include_entities=True),
    )

    params = dict(query.request.params.items_flat())
    assert query.request.method == "1.1/statuses/user_timeline.json"
    assert params["user_id"] == "123"
    assert "screen_name" not in params
    assert params["count"] == "50"
    assert params["include_rts"] == "true"
    assert params["max_id"] == "900"
    assert query.optional.entities
    assert ostatus.home_timeline("me").request.params.get_one("screen_name") == "me"
    assert ostatus.mentions_timeline("me").request.method == "1.1/statuses/mentions_timeline.json"


@pytest.mark.asyncio
async def test_status_reply_is_projected_onto_v2_fields() -> None:
    opts = ostatus.Options(optional=TweetFields(author_id=True, public_metrics=True, referenced_tweets=True))
    reply = await ostatus.retweet("1001", opts).invoke(FakeClient([LEGACY_STATUS]))

    tweet = reply.tweets[0]
    assert tweet.id == "1001"
    assert tweet.text == "hello from v1.1"
    assert tweet.author_id == "42"
    assert tweet.public_metrics == {"retweet_count": 2, "like_count": 3}
    assert tweet.referenced_tweets == [{"type": "replied_to", "id": "1000"}]
    assert tweet.lang is None


@pytest.mark.asyncio
async def test_timeline_requires_array() -> None:
    with pytest.raises(DecodeError):
        await ostatus.user_timeline("me").invoke(FakeClient([LEGACY_STATUS]))


@pytest.mark.asyncio
async def test_timeline_decodes_each_status() -> None:
    reply = await ostatus.home_timeline("me").invoke(FakeClient([[LEGACY_STATUS, {**LEGACY_STATUS, "id_str": "1002"}]]))
    assert [tweet.id for tweet in reply.tweets] == ["1001", "1002"]


@pytest.mark.asyncio
async def test_verify_credentials() -> None:
    query = oaccount.verify_credentials(CredentialsFields(include_email=True, skip_status=True))
    body = {"id_str": "42", "screen_name": "someone", "email": "a@example.com", "followers_count": 10, "lang": None}

    reply = await query.invoke(FakeClient([body]))

    assert dict(query.request.params.items_flat()) == {
        "include_email": "true",
        "include_entities": "false",
        "skip_status": "true",
    }
    assert reply.account.screen_name == "someone"
    assert reply.account.email == "a@example.com"
    assert reply.data
