"""Configuration for the Twitter API client.

This module contains the client configuration schema and related constants:
- ClientConfig: connection, timeout, retry and streaming limits
- API base URL and header constants
- Environment-backed defaults
"""

from __future__ import annotations

import logging
import os
from typing import Literal, Optional, cast

from pydantic import BaseModel, ConfigDict, Field

LOGGER = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Constants
# -----------------------------------------------------------------------------

_DEFAULT_BASE_URL = "https://api.twitter.com"
_DEFAULT_USER_AGENT = "twitter-client/0.4 (+aiohttp)"
_DEFAULT_MAX_FRAME_BYTES = 1024 * 1024
_MAX_FRAME_BYTES_CEILING = 64 * 1024 * 1024
_ALLOWED_LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Twitter sends a keepalive newline every 20 seconds on v2 streams.
STREAM_KEEPALIVE_INTERVAL_SECONDS = 20


def _default_bearer_token() -> str:
    """Return the bearer token from the environment, or an empty string."""
    return (os.getenv("TWITTER_BEARER_TOKEN") or "").strip()


def _resolve_log_level_default() -> Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
    """Normalize env-provided log level to the allowed literal set."""
    value = (os.getenv("TWITTER_LOG_LEVEL") or "INFO").strip().upper()
    if value not in _ALLOWED_LOG_LEVELS:
        value = "INFO"
    return cast(Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], value)


# -----------------------------------------------------------------------------
# ClientConfig
# -----------------------------------------------------------------------------

class ClientConfig(BaseModel):
    """Immutable client configuration shared by every query invocation."""

    model_config = ConfigDict(frozen=True)

    # Connection & Auth
    BASE_URL: str = Field(
        default=((os.getenv("TWITTER_API_BASE_URL") or "").strip() or _DEFAULT_BASE_URL),
        description="Twitter API base URL. Override this if you are using a gateway or proxy.",
    )
    BEARER_TOKEN: str = Field(
        default_factory=_default_bearer_token,
        repr=False,
        description="Bearer token sent as the Authorization header. Defaults to TWITTER_BEARER_TOKEN.",
    )
    USER_AGENT: str = Field(
        default=_DEFAULT_USER_AGENT,
        description="User-Agent header attached to every request.",
    )
    HTTP_CONNECT_TIMEOUT_SECONDS: int = Field(
        default=10,
        ge=1,
        description="Seconds to wait for the TCP/TLS connection before failing.",
    )
    HTTP_TOTAL_TIMEOUT_SECONDS: Optional[int] = Field(
        default=None,
        ge=1,
        description="Overall HTTP timeout (seconds). Null disables it so long-lived streams are not interrupted.",
    )
    HTTP_SOCK_READ_SECONDS: int = Field(
        default=90,
        ge=1,
        description=(
            "Idle read timeout (seconds). Streams send a keepalive every "
            f"{STREAM_KEEPALIVE_INTERVAL_SECONDS}s, so a stall longer than this is treated as a dead connection."
        ),
    )

    # Retries (connection setup only; the streaming engine never retries)
    CONNECT_MAX_ATTEMPTS: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts made to establish a request before surfacing the failure.",
    )
    RETRY_MAX_WAIT_SECONDS: float = Field(
        default=8.0,
        ge=0.0,
        le=900.0,
        description="Upper bound on the exponential backoff between connection attempts.",
    )

    # Streaming
    STREAM_MAX_FRAME_BYTES: int = Field(
        default=_DEFAULT_MAX_FRAME_BYTES,
        ge=1024,
        le=_MAX_FRAME_BYTES_CEILING,
        description="Largest single stream message accepted before the invocation aborts with a framing error.",
    )
    STREAM_READ_CHUNK_BYTES: int = Field(
        default=4096,
        ge=64,
        le=1024 * 1024,
        description="Chunk size requested from the socket on each stream read.",
    )

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default_factory=_resolve_log_level_default,
        description="Minimum level emitted by RequestLogger console output.",
    )

    def api_url(self, method: str) -> str:
        """Join the configured base URL and an API method path like ``2/tweets``."""
        return self.BASE_URL.rstrip("/") + "/" + method.lstrip("/")
