"""Asynchronous Twitter API client.

- core: configuration, error taxonomy, request-scoped logging
- transport: Request/Params values and the aiohttp-backed Client
- streaming: newline-delimited JSON framing and the StreamConsumer engine
- queries: endpoint builders (v2 tweets, users, rules; v1.1 statuses, account)
- models: pydantic response shapes

Attributes are loaded lazily so ``import twitter_client`` stays cheap.
"""

from typing import TYPE_CHECKING

try:
    from importlib.metadata import version as _get_version
    __version__ = _get_version("twitter-client")
except Exception:
    __version__ = "0.1.0"  # Fallback if not installed as package

if TYPE_CHECKING:
    from .core.config import ClientConfig
    from .core.errors import (
        DecodeError,
        FramingError,
        StreamCancelledError,
        StreamDeadlineExceeded,
        TransportError,
        TwitterAPIError,
        TwitterClientError,
    )
    from .core.logging_system import RequestLogger
    from .queries.base import fetch_all_pages, stream_until_stop
    from .streaming.consumer import CONTINUE, STOP, Envelope, Fail, StreamResult, StreamState
    from .transport.client import Client
    from .transport.request import Params, Request


__all__ = [
    "__version__",
    "Client",
    "ClientConfig",
    "Params",
    "Request",
    "RequestLogger",
    "CONTINUE",
    "STOP",
    "Envelope",
    "Fail",
    "StreamResult",
    "StreamState",
    "fetch_all_pages",
    "stream_until_stop",
    "DecodeError",
    "FramingError",
    "StreamCancelledError",
    "StreamDeadlineExceeded",
    "TransportError",
    "TwitterAPIError",
    "TwitterClientError",
]

_LAZY_IMPORTS = {
    "Client": (".transport.client", "Client"),
    "ClientConfig": (".core.config", "ClientConfig"),
    "Params": (".transport.request", "Params"),
    "Request": (".transport.request", "Request"),
    "RequestLogger": (".core.logging_system", "RequestLogger"),
    "CONTINUE": (".streaming.consumer", "CONTINUE"),
    "STOP": (".streaming.consumer", "STOP"),
    "Envelope": (".streaming.consumer", "Envelope"),
    "Fail": (".streaming.consumer", "Fail"),
    "StreamResult": (".streaming.consumer", "StreamResult"),
    "StreamState": (".streaming.consumer", "StreamState"),
    "fetch_all_pages": (".queries.base", "fetch_all_pages"),
    "stream_until_stop": (".queries.base", "stream_until_stop"),
    "DecodeError": (".core.errors", "DecodeError"),
    "FramingError": (".core.errors", "FramingError"),
    "StreamCancelledError": (".core.errors", "StreamCancelledError"),
    "StreamDeadlineExceeded": (".core.errors", "StreamDeadlineExceeded"),
    "TransportError": (".core.errors", "TransportError"),
    "TwitterAPIError": (".core.errors", "TwitterAPIError"),
    "TwitterClientError": (".core.errors", "TwitterClientError"),
}


def __getattr__(name: str):
    """Lazy-load public attributes on first access."""
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        import importlib
        module = importlib.import_module(module_path, __name__)
        value = getattr(module, attr_name)
        globals()[name] = value
        return value
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    return sorted(set(globals()) | set(__all__))
