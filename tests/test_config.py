"""Tests for ClientConfig and the Request/Params values."""

from __future__ import annotations

import pydantic
import pytest

from twitter_client.core.config import ClientConfig
from twitter_client.transport.request import Params, Request


def test_bearer_token_defaults_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("TWITTER_BEARER_TOKEN", "  env-token  ")
    assert ClientConfig().BEARER_TOKEN == "env-token"


def test_bearer_token_is_hidden_from_repr() -> None:
    assert "secret" not in repr(ClientConfig(BEARER_TOKEN="secret"))


@pytest.mark.parametrize(("raw", "expected"), [("debug", "DEBUG"), ("bogus", "INFO"), ("", "INFO")])
def test_log_level_from_environment(monkeypatch, raw: str, expected: str) -> None:
    monkeypatch.setenv("TWITTER_LOG_LEVEL", raw)
    assert ClientConfig().LOG_LEVEL == expected


def test_config_is_frozen() -> None:
    config = ClientConfig(BEARER_TOKEN="x")
    with pytest.raises(pydantic.ValidationError):
        config.BEARER_TOKEN = "y"  # type: ignore[misc]


@pytest.mark.parametrize(
    "overrides",
    [
        {"CONNECT_MAX_ATTEMPTS": 0},
        {"CONNECT_MAX_ATTEMPTS": 11},
        {"STREAM_MAX_FRAME_BYTES": 10},
        {"RETRY_MAX_WAIT_SECONDS": -1},
    ],
)
def test_config_bounds(overrides: dict) -> None:
    with pytest.raises(pydantic.ValidationError):
        ClientConfig(**overrides)


def test_api_url_joins_paths() -> None:
    config = ClientConfig(BASE_URL="https://gateway.example/twitter/")
    assert config.api_url("/2/tweets") == "https://gateway.example/twitter/2/tweets"
    assert config.api_url("1.1/statuses/update.json") == "https://gateway.example/twitter/1.1/statuses/update.json"


def test_params_set_add_and_flatten() -> None:
    params = Params()
    params.set("b", "2")
    params.add("a", "x")
    params.add("a", "y")
    params.set("c", "3")
    params.set("c")

    assert params.items_flat() == [("a", "x,y"), ("b", "2")]
    assert params.encode() == "a=x%2Cy&b=2"
    assert params.get_one("missing") is None


def test_request_snapshot_is_independent() -> None:
    request = Request(method="2/tweets")
    request.params.set("ids", "1")
    snapshot = request.snapshot()
    request.params.set("ids", "2")

    assert snapshot.params.get_one("ids") == "1"


def test_with_params_leaves_original_untouched() -> None:
    request = Request(method="2/tweets")
    clone = request.with_params([("ids", "9")])

    assert clone.params.get_one("ids") == "9"
    assert "ids" not in request.params
