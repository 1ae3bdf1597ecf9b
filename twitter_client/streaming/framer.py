"""Newline-delimited JSON framing for streaming endpoints.

Twitter streams deliver one JSON object per line and write a bare newline
every few seconds as a keepalive. ``MessageFramer`` turns the raw chunked body
into a sequence of classified ``Frame`` values:

- whitespace-only line -> KEEPALIVE (no payload)
- object with ``errors`` and no ``data``, or a ``disconnect`` notice -> ERROR
- any other object -> DATA

Lines larger than ``max_frame_bytes`` abort with ``FramingError``. Read errors
from the source propagate unchanged; the framer never retries.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Protocol

from ..core.errors import DecodeError, FramingError
from .constants import DEFAULT_MAX_FRAME_BYTES

LOGGER = logging.getLogger(__name__)


class ByteSource(Protocol):
    """An open response body: chunked reads plus an explicit close."""

    async def read(self) -> bytes:
        """Return the next chunk, or ``b""`` once the body is exhausted."""
        ...

    async def close(self) -> None:
        ...


class FrameKind(str, Enum):
    DATA = "data"
    KEEPALIVE = "keepalive"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Frame:
    """One line of the stream, classified."""

    kind: FrameKind
    raw: bytes = b""
    payload: Optional[dict[str, Any]] = None


KEEPALIVE_FRAME = Frame(FrameKind.KEEPALIVE)


def is_error_message(payload: dict[str, Any]) -> bool:
    """Return True when a decoded stream object is a provider error notice."""
    if isinstance(payload.get("disconnect"), dict):
        return True
    return isinstance(payload.get("errors"), list) and "data" not in payload


def classify_line(line: bytes) -> Frame:
    """Classify one complete line (without its trailing newline)."""
    stripped = line.strip()
    if not stripped:
        return KEEPALIVE_FRAME
    try:
        payload = json.loads(stripped)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DecodeError("decoding stream message", data=bytes(stripped), cause=exc) from exc
    if not isinstance(payload, dict):
        raise DecodeError(
            f"decoding stream message: expected a JSON object, got {type(payload).__name__}",
            data=bytes(stripped),
        )
    kind = FrameKind.ERROR if is_error_message(payload) else FrameKind.DATA
    return Frame(kind, bytes(stripped), payload)


class MessageFramer:
    """Lazily split a ByteSource into frames."""

    def __init__(self, source: ByteSource, *, max_frame_bytes: int = DEFAULT_MAX_FRAME_BYTES) -> None:
        self._source = source
        self._max_frame_bytes = max(1, max_frame_bytes)
        self._buf = bytearray()
        self._scan_from = 0
        self._eof = False
        self.bytes_read = 0

    def _oversized(self, size: int) -> FramingError:
        return FramingError(
            f"stream message of {size} bytes exceeds the {self._max_frame_bytes} byte limit",
            size=size,
            limit=self._max_frame_bytes,
        )

    async def next_frame(self) -> Optional[Frame]:
        """Return the next frame, or None once the source is exhausted."""
        while True:
            newline_idx = self._buf.find(b"\n", self._scan_from)
            if newline_idx != -1:
                if newline_idx > self._max_frame_bytes:
                    raise self._oversized(newline_idx)
                line = bytes(self._buf[:newline_idx])
                del self._buf[: newline_idx + 1]
                self._scan_from = 0
                return classify_line(line)

            if len(self._buf) > self._max_frame_bytes:
                raise self._oversized(len(self._buf))

            if self._eof:
                if not self._buf:
                    return None
                # Unterminated final line.
                line = bytes(self._buf)
                self._buf.clear()
                self._scan_from = 0
                return classify_line(line)

            self._scan_from = len(self._buf)
            chunk = await self._source.read()
            if not chunk:
                self._eof = True
                LOGGER.debug("Stream source exhausted after %d bytes", self.bytes_read)
                continue
            self.bytes_read += len(chunk)
            self._buf.extend(chunk)

    def __aiter__(self):
        return self

    async def __anext__(self) -> Frame:
        frame = await self.next_frame()
        if frame is None:
            raise StopAsyncIteration
        return frame
