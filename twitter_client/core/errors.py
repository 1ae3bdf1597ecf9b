"""Error taxonomy for the Twitter API client.

This module handles all error-related functionality:
- TwitterClientError: root of every failure raised by the client
- TransportError / FramingError / DecodeError: fatal invocation failures
- TwitterAPIError: structured provider error decoded from an error payload
- StreamCancelledError: caller-driven cancellation (not a failure)
- Status classification and a Tenacity wait strategy honoring Retry-After
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from .utils import (
    _normalize_optional_str,
    _pretty_json,
    _rate_limit_from_headers,
    _reset_delay_seconds,
    _retry_after_seconds,
    _safe_json_loads,
)

LOGGER = logging.getLogger(__name__)

# Problem types (last path segment of the v2 "type" URL) and titles that end a
# stream. Anything else delivered on a stream is advisory.
_FATAL_STREAM_PROBLEMS = frozenset(
    {
        "operational-disconnect",
        "streaming-connection",
        "not-authorized",
        "client-forbidden",
        "unsupported-authentication",
        "usage-capped",
        "connectionexception",
        "unauthorized",
        "forbidden",
        "authorization error",
    }
)

_RETRYABLE_STATUSES = frozenset({408, 425, 429})


# -----------------------------------------------------------------------------
# Exception Classes
# -----------------------------------------------------------------------------

class TwitterClientError(RuntimeError):
    """Base class for failures raised by the client."""


class TransportError(TwitterClientError):
    """Connection, timeout or read failure reported by the byte source."""

    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        self.cause = cause
        detail = f"{message}: {cause}" if cause is not None else message
        super().__init__(detail)


class FramingError(TwitterClientError):
    """A stream frame was malformed or exceeded the configured size bound."""

    def __init__(self, message: str, *, size: Optional[int] = None, limit: Optional[int] = None) -> None:
        self.size = size
        self.limit = limit
        super().__init__(message)


class DecodeError(TwitterClientError):
    """A reply or message did not match the expected JSON shape."""

    def __init__(
        self,
        message: str = "decoding response body",
        *,
        data: bytes = b"",
        cause: Optional[BaseException] = None,
    ) -> None:
        self.data = data
        self.cause = cause
        detail = f"{message}: {cause}" if cause is not None else message
        super().__init__(detail)


class StreamCancelledError(Exception):
    """The caller's cancel signal fired while a stream was running.

    Deliberately outside ``TwitterClientError`` so ``except TwitterClientError``
    never mistakes caller cancellation for a failure.
    """

    def __init__(self, reason: str = "stream cancelled") -> None:
        self.reason = reason
        super().__init__(reason)


class StreamDeadlineExceeded(StreamCancelledError):
    """The caller-supplied stream timeout elapsed."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"stream deadline of {timeout:g}s exceeded")


class TwitterAPIError(TwitterClientError):
    """Structured error reported by the Twitter API (REST reply or stream message)."""

    def __init__(
        self,
        *,
        status: int,
        reason: str,
        title: Optional[str] = None,
        detail: Optional[str] = None,
        error_type: Optional[str] = None,
        errors: Optional[list[dict[str, Any]]] = None,
        codes: Optional[list[int]] = None,
        disconnect_type: Optional[str] = None,
        raw_body: Optional[str] = None,
        rate_limit: Optional[dict[str, Any]] = None,
        retry_after: Optional[float] = None,
        is_streaming_error: bool = False,
        fatal: bool = True,
    ) -> None:
        """Normalize raw provider metadata into convenient attributes."""
        self.status = status
        self.reason = reason
        self.title = _normalize_optional_str(title)
        self.detail = _normalize_optional_str(detail)
        self.error_type = _normalize_optional_str(error_type)
        self.errors = errors or []
        self.codes = codes or []
        self.disconnect_type = _normalize_optional_str(disconnect_type)
        self.raw_body = raw_body or ""
        self.rate_limit = rate_limit or {}
        self.retry_after = retry_after
        self.is_streaming_error = is_streaming_error
        self.fatal = fatal
        summary = self.detail or self.title or f"Twitter request failed ({self.status} {self.reason})"
        super().__init__(summary)

    @property
    def problem(self) -> Optional[str]:
        """Last path segment of the problem type URL, e.g. ``usage-capped``."""
        if not self.error_type:
            return None
        return self.error_type.rstrip("/").rsplit("/", 1)[-1] or None

    @property
    def is_rate_limited(self) -> bool:
        return self.status == 429 or 88 in self.codes

    @property
    def is_auth_error(self) -> bool:
        if self.status in {401, 403}:
            return True
        return self.problem in {"not-authorized", "client-forbidden", "unsupported-authentication"}

    @property
    def is_fatal(self) -> bool:
        return self.fatal

    def describe(self) -> str:
        """Multi-line diagnostic summary used in log output."""
        lines = [f"{self.status} {self.reason}: {self}"]
        if self.title and self.title != str(self):
            lines.append(f"title: {self.title}")
        if self.error_type:
            lines.append(f"type: {self.error_type}")
        if self.disconnect_type:
            lines.append(f"disconnect: {self.disconnect_type}")
        if self.rate_limit:
            lines.append(f"rate limit: {_pretty_json(self.rate_limit)}")
        for item in self.errors:
            message = item.get("message") or item.get("detail") or item.get("title")
            if message:
                lines.append(f"- {message}")
        return "\n".join(lines)


# -----------------------------------------------------------------------------
# Retry Support
# -----------------------------------------------------------------------------

class _RetryableHTTPStatusError(Exception):
    """Wrapper that marks a provider error as retryable by the transport."""

    def __init__(self, error: TwitterAPIError, retry_after: Optional[float] = None):
        """Capture the decoded error plus optional Retry-After hint."""
        self.error = error
        self.retry_after = retry_after
        super().__init__(f"Retryable HTTP error ({error.status})")


class _RetryWait:
    """Custom Tenacity wait strategy honoring Retry-After headers."""

    def __init__(self, base_wait, *, max_wait: Optional[float] = None):
        """Store the wrapped Tenacity wait callable used as a baseline."""
        self._base_wait = base_wait
        self._max_wait = max_wait

    def __call__(self, retry_state):
        """Return the greater of base delay or Retry-After header guidance."""
        base_delay = self._base_wait(retry_state) if self._base_wait else 0
        exc = None
        if retry_state.outcome is not None:
            exc = retry_state.outcome.exception()
        if isinstance(exc, _RetryableHTTPStatusError):
            retry_after = exc.retry_after
            if isinstance(retry_after, (int, float)) and retry_after > 0:
                delay = max(base_delay, retry_after)
                if self._max_wait is not None:
                    delay = min(delay, self._max_wait)
                return delay
        return base_delay


def _classify_retryable_status(
    status: int,
    headers: Mapping[str, str],
) -> tuple[bool, Optional[float]]:
    """Return (is_retryable, retry_after_seconds) for an HTTP status."""
    if status >= 500 or status in _RETRYABLE_STATUSES:
        retry_after = _retry_after_seconds(headers.get("retry-after"))
        if retry_after is None and status == 429:
            rate_limit = _rate_limit_from_headers(headers)
            retry_after = _reset_delay_seconds(rate_limit.get("reset"))
        return True, retry_after
    return False, None


# -----------------------------------------------------------------------------
# Error Payload Parsing
# -----------------------------------------------------------------------------

def _extract_twitter_error_details(parsed: Any) -> dict[str, Any]:
    """Normalize v1.1 and v2 error payloads into structured metadata."""
    if not isinstance(parsed, dict):
        return {}
    raw_errors = parsed.get("errors")
    errors = [item for item in raw_errors if isinstance(item, dict)] if isinstance(raw_errors, list) else []
    first = errors[0] if errors else {}

    codes: list[int] = []
    for item in errors:
        code = item.get("code")
        if isinstance(code, int) and not isinstance(code, bool):
            codes.append(code)

    disconnect = parsed.get("disconnect")
    disconnect_reason = disconnect.get("reason") if isinstance(disconnect, dict) else None

    title = parsed.get("title") or first.get("title")
    detail = (
        parsed.get("detail")
        or first.get("detail")
        or first.get("message")
        or disconnect_reason
    )
    return {
        "title": title,
        "detail": detail,
        "error_type": parsed.get("type") or first.get("type"),
        "errors": errors,
        "codes": codes,
        "disconnect_type": first.get("disconnect_type")
        or (str(disconnect.get("code")) if isinstance(disconnect, dict) and disconnect.get("code") is not None else None),
        "status": parsed.get("status") if isinstance(parsed.get("status"), int) else None,
    }


def _is_fatal_stream_problem(details: dict[str, Any], parsed: Any) -> bool:
    """Return True when a stream error message means the stream is over."""
    if isinstance(parsed, dict) and isinstance(parsed.get("disconnect"), dict):
        return True
    candidates: list[str] = []
    for key in ("error_type", "title"):
        value = details.get(key)
        if isinstance(value, str) and value:
            candidates.append(value.rstrip("/").rsplit("/", 1)[-1].lower())
            candidates.append(value.lower())
    for item in details.get("errors") or []:
        for key in ("type", "title"):
            value = item.get(key)
            if isinstance(value, str) and value:
                candidates.append(value.rstrip("/").rsplit("/", 1)[-1].lower())
                candidates.append(value.lower())
    return any(candidate in _FATAL_STREAM_PROBLEMS for candidate in candidates)


def _build_twitter_api_error(
    status: int,
    reason: str,
    body_text: Optional[str],
    *,
    headers: Optional[Mapping[str, str]] = None,
) -> TwitterAPIError:
    """Create a structured error wrapper for a non-2xx REST or stream response."""
    details = _extract_twitter_error_details(_safe_json_loads(body_text))
    headers = headers or {}
    rate_limit = _rate_limit_from_headers(headers)
    retry_after = _retry_after_seconds(headers.get("retry-after"))
    if retry_after is None and status == 429:
        retry_after = _reset_delay_seconds(rate_limit.get("reset"))
    return TwitterAPIError(
        status=status,
        reason=reason,
        title=details.get("title"),
        detail=details.get("detail"),
        error_type=details.get("error_type"),
        errors=details.get("errors"),
        codes=details.get("codes"),
        disconnect_type=details.get("disconnect_type"),
        raw_body=body_text,
        rate_limit=rate_limit,
        retry_after=retry_after,
    )


def _build_stream_error(payload: dict[str, Any], raw: bytes) -> TwitterAPIError:
    """Decode an in-band stream error message and classify it fatal or advisory."""
    details = _extract_twitter_error_details(payload)
    fatal = _is_fatal_stream_problem(details, payload)
    status = details.get("status") or 200
    return TwitterAPIError(
        status=status,
        reason="stream error",
        title=details.get("title"),
        detail=details.get("detail"),
        error_type=details.get("error_type"),
        errors=details.get("errors"),
        codes=details.get("codes"),
        disconnect_type=details.get("disconnect_type"),
        raw_body=raw.decode("utf-8", errors="replace"),
        is_streaming_error=True,
        fatal=fatal,
    )
