"""Core infrastructure module.

Foundation services required by every other subsystem:
- Configuration schema (ClientConfig)
- Error taxonomy
- Request-scoped logging
- Pure utility functions
"""

from .config import ClientConfig, LOGGER
from .errors import (
    DecodeError,
    FramingError,
    StreamCancelledError,
    StreamDeadlineExceeded,
    TransportError,
    TwitterAPIError,
    TwitterClientError,
)
from .logging_system import RequestLogger

__all__ = [
    "ClientConfig",
    "LOGGER",
    "DecodeError",
    "FramingError",
    "StreamCancelledError",
    "StreamDeadlineExceeded",
    "TransportError",
    "TwitterAPIError",
    "TwitterClientError",
    "RequestLogger",
]
