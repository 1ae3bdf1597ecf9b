"""Tests for newline-delimited JSON framing."""

from __future__ import annotations

import pytest

from twitter_client.core.errors import DecodeError, FramingError
from twitter_client.streaming.framer import FrameKind, MessageFramer, classify_line, is_error_message

from conftest import FakeSource


async def _collect(framer: MessageFramer):
    return [frame async for frame in framer]


@pytest.mark.asyncio
async def test_messages_split_across_chunks_are_reassembled() -> None:
    source = FakeSource([b'{"data":{"id":', b'"1","text":"a"}}\r\n{"data"', b':{"id":"2","text":"b"}}\r\n'])
    frames = await _collect(MessageFramer(source))

    assert [frame.kind for frame in frames] == [FrameKind.DATA, FrameKind.DATA]
    assert frames[0].payload == {"data": {"id": "1", "text": "a"}}
    assert frames[1].raw == b'{"data":{"id":"2","text":"b"}}'


@pytest.mark.asyncio
async def test_blank_lines_are_keepalives() -> None:
    source = FakeSource([b"\r\n", b"\r\n\r\n", b'{"data":{"id":"9"}}\r\n'])
    frames = await _collect(MessageFramer(source))

    assert [frame.kind for frame in frames] == [
        FrameKind.KEEPALIVE,
        FrameKind.KEEPALIVE,
        FrameKind.KEEPALIVE,
        FrameKind.DATA,
    ]
    assert frames[0].payload is None


@pytest.mark.asyncio
async def test_unterminated_final_line_is_flushed_at_eof() -> None:
    source = FakeSource([b'{"data":{"id":"1"}}\n{"data":{"id":"2"}}'])
    framer = MessageFramer(source)

    first = await framer.next_frame()
    second = await framer.next_frame()

    assert first is not None and second is not None
    assert second.payload == {"data": {"id": "2"}}
    assert await framer.next_frame() is None
    assert await framer.next_frame() is None


@pytest.mark.asyncio
async def test_oversized_line_raises_framing_error() -> None:
    big = b'{"data":{"id":"1","text":"' + b"x" * 64 + b'"}}\n'
    framer = MessageFramer(FakeSource([big]), max_frame_bytes=32)

    with pytest.raises(FramingError) as excinfo:
        await framer.next_frame()

    assert excinfo.value.limit == 32
    assert excinfo.value.size is not None and excinfo.value.size > 32


@pytest.mark.asyncio
async def test_unbounded_partial_line_raises_before_newline_arrives() -> None:
    source = FakeSource([b"x" * 20, b"x" * 20, b"x" * 20], block_at_end=True)
    framer = MessageFramer(source, max_frame_bytes=32)

    with pytest.raises(FramingError):
        await framer.next_frame()
    assert source.reads == 2


@pytest.mark.asyncio
async def test_line_at_exact_limit_is_accepted() -> None:
    payload = b'{"data":{"id":"1"}}'
    framer = MessageFramer(FakeSource([payload + b"\n"]), max_frame_bytes=len(payload))

    frame = await framer.next_frame()

    assert frame is not None and frame.kind is FrameKind.DATA


@pytest.mark.asyncio
async def test_bytes_read_counts_every_chunk() -> None:
    chunks = [b"\r\n", b'{"data":{"id":"1"}}\r\n']
    framer = MessageFramer(FakeSource(chunks))
    await _collect(framer)

    assert framer.bytes_read == sum(len(chunk) for chunk in chunks)


def test_classify_line_rejects_malformed_json() -> None:
    with pytest.raises(DecodeError) as excinfo:
        classify_line(b'{"data": ')
    assert excinfo.value.data == b'{"data":'


def test_classify_line_rejects_non_object() -> None:
    with pytest.raises(DecodeError):
        classify_line(b"[1, 2, 3]")


def test_error_messages_are_detected() -> None:
    assert is_error_message({"errors": [{"title": "operational-disconnect"}]})
    assert is_error_message({"disconnect": {"code": 7, "reason": "admin logout"}})
    # Partial errors next to data are part of a data message.
    assert not is_error_message({"data": {"id": "1"}, "errors": [{"title": "Not Found Error"}]})
    assert not is_error_message({"data": {"id": "1"}})
    assert classify_line(b'{"errors":[{"title":"x"}]}').kind is FrameKind.ERROR
