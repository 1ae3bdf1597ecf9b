"""Streaming delivery engine.

``StreamConsumer`` runs one streaming invocation end to end:

1. acquire the byte source from the transport (CONNECTING)
2. pull frames from ``MessageFramer`` and hand each decoded message to the
   caller, strictly in arrival order, awaiting the callback before the next
   read (RECEIVING)
3. finish as STOPPED (caller asked to stop, or cancelled), FAILED (an error
   ended the stream) or CLOSED (the server ended the stream)

The byte source is closed exactly once on every exit path. Nothing here
retries or reconnects; a fresh invocation is the caller's decision.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar, Union

from ..core.errors import (
    DecodeError,
    StreamCancelledError,
    StreamDeadlineExceeded,
    TransportError,
    TwitterAPIError,
    TwitterClientError,
    _build_stream_error,
)
from ..core.logging_system import RequestLogger
from ..core.utils import _truncate_bytes
from .constants import ADVISORY_LOG_INTERVAL_SECONDS, DEFAULT_MAX_FRAME_BYTES
from .framer import ByteSource, Frame, FrameKind, MessageFramer

LOGGER = RequestLogger.get_logger(__name__)

T = TypeVar("T")
_R = TypeVar("_R")


# -----------------------------------------------------------------------------
# Outcomes, envelopes, results
# -----------------------------------------------------------------------------

class StreamOutcome(Enum):
    """What the consumer does after a callback returns."""

    CONTINUE = "continue"
    STOP = "stop"


CONTINUE = StreamOutcome.CONTINUE
STOP = StreamOutcome.STOP


@dataclass(frozen=True, slots=True)
class Fail:
    """Callback outcome that ends the stream with ``cause``."""

    cause: BaseException


CallbackResult = Union[StreamOutcome, Fail, None]


class StreamState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    RECEIVING = "receiving"
    STOPPED = "stopped"
    FAILED = "failed"
    CLOSED = "closed"


_TERMINAL_STATES = frozenset({StreamState.STOPPED, StreamState.FAILED, StreamState.CLOSED})


@dataclass(slots=True)
class Envelope(Generic[T]):
    """A decoded stream message plus the raw bytes it came from.

    Only valid for the duration of the callback it is passed to.
    """

    payload: T
    data: bytes
    seq: int

    def redecode(self, decode: Callable[[bytes], _R]) -> _R:
        """Decode the original bytes again with a different projection."""
        return decode(self.data)


@dataclass(slots=True)
class StreamResult:
    """Summary returned by a stream invocation that did not raise."""

    state: StreamState
    messages: int = 0
    keepalives: int = 0
    advisories: int = 0
    bytes_read: int = 0


MessageCallback = Callable[[Envelope[Any]], Union[CallbackResult, Awaitable[CallbackResult]]]
ErrorCallback = Callable[[TwitterAPIError], Union[CallbackResult, Awaitable[CallbackResult]]]
Decoder = Callable[[dict[str, Any], bytes], Any]
Opener = Callable[[], Awaitable[ByteSource]]


async def _call(callback: Callable[[Any], Any], argument: Any) -> Any:
    """Invoke a sync or async callback and return its settled result."""
    result = callback(argument)
    if inspect.isawaitable(result):
        result = await result
    return result


def _passthrough(payload: dict[str, Any], _raw: bytes) -> dict[str, Any]:
    return payload


# -----------------------------------------------------------------------------
# StreamConsumer
# -----------------------------------------------------------------------------

class StreamConsumer(Generic[T]):
    """Owns exactly one streaming invocation.

    Args:
        opener: Coroutine factory returning the open ByteSource.
        decode: Turns a data message (parsed object, raw bytes) into the
            payload placed in the Envelope. Failures abort with DecodeError.
        max_frame_bytes: Largest accepted message; larger aborts with FramingError.
        name: Label used in log lines (usually the API method path).
    """

    def __init__(
        self,
        opener: Opener,
        *,
        decode: Decoder = _passthrough,
        max_frame_bytes: int = DEFAULT_MAX_FRAME_BYTES,
        name: str = "stream",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._opener = opener
        self._decode = decode
        self._max_frame_bytes = max_frame_bytes
        self.name = name
        self.logger = logger or LOGGER
        self._state = StreamState.IDLE
        self._last_advisory_log = 0.0

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def finished(self) -> bool:
        return self._state in _TERMINAL_STATES

    # ----------------------------------------------------------------------
    # Cancellation plumbing
    # ----------------------------------------------------------------------

    @staticmethod
    def _check_cancelled(
        cancel: Optional[asyncio.Event],
        deadline: Optional[float],
        timeout: Optional[float],
    ) -> None:
        if cancel is not None and cancel.is_set():
            raise StreamCancelledError()
        if deadline is not None and timeout is not None and asyncio.get_running_loop().time() >= deadline:
            raise StreamDeadlineExceeded(timeout)

    async def _abandon(self, task: asyncio.Future) -> Any:
        """Cancel ``task`` and return its result if it completed anyway."""
        if not task.done():
            task.cancel()
        try:
            return await task
        except asyncio.CancelledError:
            return None
        except Exception as exc:
            self.logger.debug("Abandoned %s operation failed: %s", self.name, exc)
            return None

    async def _race(
        self,
        awaitable: Awaitable[_R],
        cancel: Optional[asyncio.Event],
        deadline: Optional[float],
        timeout: Optional[float],
        *,
        on_abandon: Optional[Callable[[Any], Awaitable[None]]] = None,
    ) -> _R:
        """Await ``awaitable`` unless the cancel event or deadline wins first."""
        if cancel is None and deadline is None:
            return await awaitable

        loop = asyncio.get_running_loop()
        task = asyncio.ensure_future(awaitable)
        waiters: set[asyncio.Future] = {task}
        cancel_waiter: Optional[asyncio.Future] = None
        if cancel is not None:
            cancel_waiter = asyncio.ensure_future(cancel.wait())
            waiters.add(cancel_waiter)
        remaining = None if deadline is None else max(0.0, deadline - loop.time())

        try:
            done, _pending = await asyncio.wait(waiters, timeout=remaining, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            # The awaited operation may have finished in the same tick; release what it produced.
            leftover = await asyncio.shield(self._abandon(task))
            if leftover is not None and on_abandon is not None:
                await on_abandon(leftover)
            raise
        finally:
            if cancel_waiter is not None and not cancel_waiter.done():
                cancel_waiter.cancel()

        if task in done:
            return task.result()

        leftover = await self._abandon(task)
        if leftover is not None and on_abandon is not None:
            await on_abandon(leftover)
        if cancel is not None and cancel.is_set():
            raise StreamCancelledError()
        raise StreamDeadlineExceeded(timeout if timeout is not None else 0.0)

    # ----------------------------------------------------------------------
    # Frame handling
    # ----------------------------------------------------------------------

    def _envelope(self, frame: Frame, seq: int) -> Envelope[T]:
        assert frame.payload is not None
        try:
            payload = self._decode(frame.payload, frame.raw)
        except DecodeError:
            raise
        except Exception as exc:
            raise DecodeError("decoding stream message", data=frame.raw, cause=exc) from exc
        return Envelope(payload=payload, data=frame.raw, seq=seq)

    def _log_advisory(self, error: TwitterAPIError) -> None:
        now = time.monotonic()
        if now - self._last_advisory_log < ADVISORY_LOG_INTERVAL_SECONDS:
            self.logger.debug("Advisory stream error on %s: %s", self.name, error)
            return
        self._last_advisory_log = now
        self.logger.warning("Advisory stream error on %s: %s", self.name, error.describe())

    @staticmethod
    def _interpret(outcome: Any) -> Optional[StreamState]:
        """Map a callback result to a terminal state, or None to keep reading."""
        if outcome is None or outcome is CONTINUE:
            return None
        if outcome is STOP:
            return StreamState.STOPPED
        if isinstance(outcome, Fail):
            raise outcome.cause
        raise TypeError(
            f"stream callback returned {outcome!r}; expected None, CONTINUE, STOP or Fail(cause)"
        )

    # ----------------------------------------------------------------------
    # Run
    # ----------------------------------------------------------------------

    async def run(
        self,
        callback: MessageCallback,
        *,
        on_error: Optional[ErrorCallback] = None,
        cancel: Optional[asyncio.Event] = None,
        timeout: Optional[float] = None,
    ) -> StreamResult:
        """Consume the stream until the callback stops it, it ends, or it fails.

        Args:
            callback: Called once per data message with an Envelope. Returns
                None/CONTINUE, STOP, or Fail(cause); raising equals Fail.
            on_error: Receives advisory provider errors delivered in-band.
                Its result is interpreted like ``callback``'s. When omitted,
                advisories are logged and the stream continues.
            cancel: Event that aborts the stream promptly when set.
            timeout: Seconds after which the stream is abandoned.

        Raises:
            StreamCancelledError: ``cancel`` fired or ``timeout`` elapsed.
            TwitterAPIError: the server rejected the request or sent a fatal
                in-band error.
            TransportError / FramingError / DecodeError: as named.
            Any exception raised by, or returned via Fail from, a callback.
        """
        if self._state is not StreamState.IDLE:
            raise RuntimeError(f"StreamConsumer for {self.name} already used (state={self._state.value})")

        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout if timeout is not None else None
        result = StreamResult(state=StreamState.IDLE)
        source: Optional[ByteSource] = None
        framer: Optional[MessageFramer] = None

        async def _close_abandoned(late_source: ByteSource) -> None:
            await late_source.close()

        with RequestLogger.bind(stream_id=self.name):
            self._state = StreamState.CONNECTING
            try:
                self._check_cancelled(cancel, deadline, timeout)
                source = await self._race(
                    self._opener(), cancel, deadline, timeout, on_abandon=_close_abandoned
                )
                self._state = StreamState.RECEIVING
                self.logger.debug("Receiving from %s", self.name)
                framer = MessageFramer(source, max_frame_bytes=self._max_frame_bytes)

                while True:
                    self._check_cancelled(cancel, deadline, timeout)
                    try:
                        frame = await self._race(framer.next_frame(), cancel, deadline, timeout)
                    except (TwitterClientError, StreamCancelledError):
                        raise
                    except Exception as exc:
                        raise TransportError(f"reading {self.name}", cause=exc) from exc

                    if frame is None:
                        self._state = StreamState.CLOSED
                        break

                    if frame.kind is FrameKind.KEEPALIVE:
                        result.keepalives += 1
                        continue

                    if frame.kind is FrameKind.ERROR:
                        assert frame.payload is not None
                        error = _build_stream_error(frame.payload, frame.raw)
                        if error.is_fatal:
                            self.logger.warning("Fatal stream error on %s:\n%s", self.name, error.describe())
                            raise error
                        result.advisories += 1
                        if on_error is None:
                            self._log_advisory(error)
                            continue
                        terminal = self._interpret(await _call(on_error, error))
                    else:
                        envelope = self._envelope(frame, result.messages)
                        result.messages += 1
                        self.logger.debug(
                            "Stream message %d on %s: %s",
                            envelope.seq,
                            self.name,
                            _truncate_bytes(envelope.data),
                        )
                        terminal = self._interpret(await _call(callback, envelope))

                    if terminal is not None:
                        self._state = terminal
                        break
            except (StreamCancelledError, asyncio.CancelledError) as exc:
                self._state = StreamState.STOPPED
                self.logger.info("Stream %s cancelled: %s", self.name, getattr(exc, "reason", "task cancelled"))
                raise
            except BaseException:
                self._state = StreamState.FAILED
                raise
            finally:
                if framer is not None:
                    result.bytes_read = framer.bytes_read
                if source is not None:
                    await self._close_source(source)

        result.state = self._state
        self.logger.info(
            "Stream %s finished: state=%s messages=%d keepalives=%d advisories=%d",
            self.name,
            result.state.value,
            result.messages,
            result.keepalives,
            result.advisories,
        )
        return result

    async def _close_source(self, source: ByteSource) -> None:
        try:
            await source.close()
        except Exception as exc:
            self.logger.warning("Closing %s raised %s", self.name, exc, exc_info=True)
