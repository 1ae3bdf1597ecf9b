"""Pure helper functions shared across the client.

- JSON helpers (safe parsing, pretty printing)
- String/list normalization
- HTTP header helpers (Retry-After, rate limit headers)
"""

from __future__ import annotations

import datetime
import email.utils
import json
from typing import Any, Mapping, Optional


# -----------------------------------------------------------------------------
# JSON Helpers
# -----------------------------------------------------------------------------

def _pretty_json(value: Any) -> str:
    """Return a human-readable JSON string or an empty string when not applicable."""
    if value is None:
        return ""
    if isinstance(value, (str, bytes)):
        text = value.decode("utf-8", errors="replace") if isinstance(value, bytes) else value
        return text.strip()
    try:
        return json.dumps(value, indent=2, ensure_ascii=False)
    except Exception:
        return str(value)


def _safe_json_loads(payload: Optional[str | bytes]) -> Any:
    """Return parsed JSON or None without raising."""
    if not payload:
        return None
    try:
        return json.loads(payload)
    except Exception:
        return None


def _truncate_bytes(data: bytes, limit: int = 256) -> str:
    """Render a byte payload for log lines, clipped to ``limit`` characters."""
    text = data.decode("utf-8", errors="replace")
    if len(text) <= limit:
        return text
    return text[:limit] + f"... ({len(data)} bytes)"


# -----------------------------------------------------------------------------
# Type Coercion and String Normalization
# -----------------------------------------------------------------------------

def _coerce_positive_int(value: Any) -> Optional[int]:
    """Convert strings/numbers into positive integers."""
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    try:
        coerced = int(value)
    except (TypeError, ValueError):
        return None
    return coerced if coerced > 0 else None


def _normalize_optional_str(value: Any) -> Optional[str]:
    """Convert arbitrary input into a trimmed string or None."""
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)
    value = value.strip()
    return value or None


# -----------------------------------------------------------------------------
# HTTP Utilities
# -----------------------------------------------------------------------------

def _retry_after_seconds(value: Optional[str]) -> Optional[float]:
    """Convert Retry-After header value into seconds."""
    if not value:
        return None
    trimmed = value.strip()
    if not trimmed:
        return None
    try:
        seconds = float(trimmed)
        return max(0.0, seconds)
    except ValueError:
        pass
    try:
        dt = email.utils.parsedate_to_datetime(trimmed)
        if dt is None:
            return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=datetime.timezone.utc)
        now = datetime.datetime.now(datetime.timezone.utc)
        seconds = (dt - now).total_seconds()
        return max(0.0, seconds)
    except (TypeError, ValueError, OverflowError):
        return None


def _rate_limit_from_headers(headers: Mapping[str, str]) -> dict[str, Any]:
    """Extract the x-rate-limit-* headers into a small metadata dict."""
    limit = _coerce_positive_int(headers.get("x-rate-limit-limit"))
    remaining_raw = headers.get("x-rate-limit-remaining")
    reset = _coerce_positive_int(headers.get("x-rate-limit-reset"))
    meta: dict[str, Any] = {}
    if limit is not None:
        meta["limit"] = limit
    if remaining_raw is not None:
        try:
            meta["remaining"] = max(0, int(remaining_raw))
        except (TypeError, ValueError):
            pass
    if reset is not None:
        meta["reset"] = reset
    return meta


def _reset_delay_seconds(reset_epoch: Optional[int], *, now: Optional[float] = None) -> Optional[float]:
    """Seconds until an x-rate-limit-reset epoch timestamp, never negative."""
    if reset_epoch is None:
        return None
    if now is None:
        now = datetime.datetime.now(datetime.timezone.utc).timestamp()
    return max(0.0, float(reset_epoch) - now)
