"""HTTP transport: request values and the aiohttp-backed Client."""

from .client import Client, ResponseByteSource
from .request import Params, Request

__all__ = ["Client", "ResponseByteSource", "Params", "Request"]
