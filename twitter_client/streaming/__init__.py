"""Streaming delivery subsystem.

- framer: newline-delimited JSON framing with keepalive/error classification
- consumer: StreamConsumer state machine, outcomes and envelopes

The subsystem depends only on an abstract ByteSource; the aiohttp-backed
source lives in ``twitter_client.transport``.
"""

from .consumer import (
    CONTINUE,
    STOP,
    Envelope,
    Fail,
    StreamConsumer,
    StreamOutcome,
    StreamResult,
    StreamState,
)
from .framer import ByteSource, Frame, FrameKind, MessageFramer

__all__ = [
    "CONTINUE",
    "STOP",
    "Envelope",
    "Fail",
    "StreamConsumer",
    "StreamOutcome",
    "StreamResult",
    "StreamState",
    "ByteSource",
    "Frame",
    "FrameKind",
    "MessageFramer",
]
