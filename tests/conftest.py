"""Shared fakes for unit tests."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Iterable, Optional

import pytest

from twitter_client.core.config import ClientConfig


class FakeSource:
    """In-memory ByteSource with read/close accounting.

    ``chunks`` are returned one per read. After they run out the source either
    reports end of stream or, with ``block_at_end``, waits forever (a stalled
    connection). ``raise_after`` makes the Nth read raise ``exception``.
    """

    def __init__(
        self,
        chunks: Iterable[bytes],
        *,
        block_at_end: bool = False,
        raise_after: Optional[int] = None,
        exception: Optional[BaseException] = None,
    ) -> None:
        self._chunks = list(chunks)
        self._block_at_end = block_at_end
        self._raise_after = raise_after
        self._exception = exception or ConnectionResetError("connection reset by peer")
        self.reads = 0
        self.close_calls = 0
        self.read_after_close = False

    async def read(self) -> bytes:
        if self.close_calls:
            self.read_after_close = True
        if self._raise_after is not None and self.reads >= self._raise_after:
            raise self._exception
        self.reads += 1
        await asyncio.sleep(0)
        if self._chunks:
            return self._chunks.pop(0)
        if self._block_at_end:
            await asyncio.Event().wait()
        return b""

    async def close(self) -> None:
        self.close_calls += 1


def opener_for(source: FakeSource):
    async def _open() -> FakeSource:
        return source

    return _open


def line(obj: Any) -> bytes:
    return json.dumps(obj).encode("utf-8") + b"\r\n"


def tweet_line(tweet_id: str, text: str = "hello") -> bytes:
    return line({"data": {"id": tweet_id, "text": text}})


class FakeClient:
    """Stands in for ``Client`` in query tests: replays canned JSON bodies."""

    def __init__(self, bodies: Iterable[Any]) -> None:
        self.config = ClientConfig(BEARER_TOKEN="test-token")
        self._bodies = list(bodies)
        self.requests: list[Any] = []

    async def call_json(self, request):
        self.requests.append(request)
        body = self._bodies.pop(0)
        raw = json.dumps(body).encode("utf-8")
        return body, raw


@pytest.fixture
def client_config() -> ClientConfig:
    return ClientConfig(
        BASE_URL="https://api.twitter.com",
        BEARER_TOKEN="test-token",
        CONNECT_MAX_ATTEMPTS=2,
        RETRY_MAX_WAIT_SECONDS=0.0,
    )
