"""Request-scoped logging.

This module handles logging for query and stream invocations:
- RequestLogger: context-aware logger factory with in-memory capture
- Structured event building from LogRecords
- Console formatting

The RequestLogger uses contextvars to track request_id and stream_id, so
concurrent invocations on one event loop keep their log lines apart.
"""

from __future__ import annotations

import contextlib
import logging
import sys
import threading
import time
import traceback
import uuid
from collections import deque
from contextvars import ContextVar
from typing import Any, Dict, Iterator, Optional

LOGGER = logging.getLogger(__name__)


class RequestLogger:
    """Logger factory that tags records with the current invocation.

    Attributes:
        request_id: ContextVar storing the per-invocation buffer key.
        stream_id:  ContextVar storing the streaming endpoint being consumed.
        log_level:  ContextVar storing the minimum console level for this request.
        logs:       Map of request_id -> fixed-size deque of structured log events.
    """

    request_id: ContextVar[Optional[str]] = ContextVar("twitter_request_id", default=None)
    stream_id: ContextVar[Optional[str]] = ContextVar("twitter_stream_id", default=None)
    log_level: ContextVar[int] = ContextVar("twitter_log_level", default=logging.INFO)
    max_lines: int = 2000
    console: bool = False
    logs: Dict[str, deque[dict[str, Any]]] = {}
    _last_seen: Dict[str, float] = {}
    _state_lock = threading.Lock()
    _console_formatter = logging.Formatter(
        "%(asctime)s.%(msecs)03d | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    @classmethod
    def _build_event(cls, record: logging.LogRecord) -> dict[str, Any]:
        """Return a structured log event extracted from a LogRecord."""
        try:
            message = record.getMessage()
        except Exception:
            message = str(getattr(record, "msg", "") or "")

        event: dict[str, Any] = {
            "created": float(getattr(record, "created", time.time())),
            "level": str(getattr(record, "levelname", "INFO") or "INFO"),
            "logger": str(getattr(record, "name", "") or ""),
            "request_id": getattr(record, "request_id", None),
            "stream_id": getattr(record, "stream_id", None),
            "func": str(getattr(record, "funcName", "") or ""),
            "lineno": int(getattr(record, "lineno", 0) or 0),
            "message": message,
        }
        if record.exc_text:
            event["exception"] = {"text": str(record.exc_text)}
        elif record.exc_info:
            event["exception"] = {"text": "".join(traceback.format_exception(*record.exc_info))}
        return event

    @classmethod
    def get_logger(cls, name: str = __name__) -> logging.Logger:
        """Return a logger wired to the current RequestLogger context.

        Records still propagate to the root logger, so applications keep
        control of real output; the capture handler only feeds ``logs``.
        """
        logger = logging.getLogger(name)
        if any(getattr(handler, "_twitter_capture", False) for handler in logger.handlers):
            return logger

        def _attach_context(record: logging.LogRecord) -> bool:
            record.request_id = cls.request_id.get()
            record.stream_id = cls.stream_id.get()
            record.request_log_level = cls.log_level.get()
            return True

        logger.addFilter(_attach_context)

        capture = logging.Handler(level=logging.DEBUG)
        capture.emit = cls.process_record  # type: ignore[assignment]
        capture._twitter_capture = True  # type: ignore[attr-defined]
        logger.addHandler(capture)
        logger.propagate = True
        return logger

    @classmethod
    def process_record(cls, record: logging.LogRecord) -> None:
        try:
            if cls.console and record.levelno >= int(getattr(record, "request_log_level", logging.INFO)):
                sys.stderr.write(cls._console_formatter.format(record) + "\n")
                sys.stderr.flush()
            request_id = getattr(record, "request_id", None)
            if not request_id:
                return
            event = cls._build_event(record)
            with cls._state_lock:
                buffer = cls.logs.get(request_id)
                if buffer is None or buffer.maxlen != cls.max_lines:
                    buffer = deque(buffer or (), maxlen=cls.max_lines)
                    cls.logs[request_id] = buffer
                buffer.append(event)
                cls._last_seen[request_id] = time.time()
        except Exception:
            # Logging must never break request handling.
            return

    @classmethod
    @contextlib.contextmanager
    def bind(
        cls,
        *,
        request_id: Optional[str] = None,
        stream_id: Optional[str] = None,
        level: Optional[str | int] = None,
        keep: bool = False,
    ) -> Iterator[str]:
        """Scope log records emitted inside the block to one invocation.

        The outermost scope owns the request buffer: on exit it drops it
        (unless ``keep`` is set) and ages out other stale buffers. Kept
        buffers remain readable through ``events()`` until ``cleanup()``
        removes them.
        """
        outermost = cls.request_id.get() is None
        rid = request_id or cls.request_id.get() or uuid.uuid4().hex[:16]
        tokens = [(cls.request_id, cls.request_id.set(rid))]
        if stream_id is not None:
            tokens.append((cls.stream_id, cls.stream_id.set(stream_id)))
        if level is not None:
            numeric = logging.getLevelName(level) if isinstance(level, str) else level
            if isinstance(numeric, int):
                tokens.append((cls.log_level, cls.log_level.set(numeric)))
        try:
            yield rid
        finally:
            for var, token in reversed(tokens):
                var.reset(token)
            if outermost:
                if not keep:
                    with cls._state_lock:
                        cls.logs.pop(rid, None)
                        cls._last_seen.pop(rid, None)
                cls.cleanup()

    @classmethod
    def events(cls, request_id: str) -> list[dict[str, Any]]:
        with cls._state_lock:
            return list(cls.logs.get(request_id) or ())

    @classmethod
    def cleanup(cls, max_age_seconds: float = 3600) -> None:
        """Remove stale request logs to avoid unbounded growth."""
        cutoff = time.time() - max_age_seconds
        with cls._state_lock:
            stale = [rid for rid, ts in cls._last_seen.items() if ts < cutoff]
            for rid in stale:
                cls.logs.pop(rid, None)
                cls._last_seen.pop(rid, None)
