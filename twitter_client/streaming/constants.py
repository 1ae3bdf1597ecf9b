"""Streaming engine constants."""

from __future__ import annotations

DEFAULT_MAX_FRAME_BYTES = 1024 * 1024

# Advisory stream errors are logged at most this often per invocation.
ADVISORY_LOG_INTERVAL_SECONDS = 5.0
