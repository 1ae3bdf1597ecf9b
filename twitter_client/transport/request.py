"""Request values handed to the transport.

A ``Request`` names an API method path (``2/tweets/search/recent``), the HTTP
verb, its query parameters and an optional body. Query builders construct one
per query value; the transport receives a frozen snapshot per call.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Iterable, Optional
from urllib.parse import urlencode


class Params(dict[str, list[str]]):
    """Multi-valued request parameters: name -> list of string values."""

    def set(self, name: str, *values: str) -> None:
        """Replace ``name`` with ``values``; no values removes the parameter."""
        if values:
            self[name] = [str(v) for v in values]
        else:
            self.pop(name, None)

    def add(self, name: str, *values: str) -> None:
        self.setdefault(name, []).extend(str(v) for v in values)

    def get_one(self, name: str) -> Optional[str]:
        values = self.get(name)
        return values[0] if values else None

    def items_flat(self) -> list[tuple[str, str]]:
        """(name, value) pairs in name order; multi-values are comma-joined."""
        return [(name, ",".join(values)) for name, values in sorted(self.items()) if values]

    def encode(self) -> str:
        return urlencode(self.items_flat())

    def copy(self) -> "Params":
        return Params({name: list(values) for name, values in self.items()})


@dataclass
class Request:
    """One API call: method path, HTTP verb, parameters and optional body."""

    method: str
    http_method: str = "GET"
    params: Params = field(default_factory=Params)
    data: Optional[bytes] = None
    content_type: Optional[str] = None

    def set_body_to_params(self) -> None:
        """Move the parameters into a form-encoded body (v1.1 POST endpoints)."""
        self.data = self.params.encode().encode("utf-8")
        self.content_type = "application/x-www-form-urlencoded"
        self.params = Params()

    def set_json_body(self, body: bytes) -> None:
        self.data = body
        self.content_type = "application/json"

    def with_params(self, extra: Iterable[tuple[str, str]]) -> "Request":
        """Return a deep copy with ``extra`` parameters set."""
        clone = copy.deepcopy(self)
        for name, value in extra:
            clone.params.set(name, value)
        return clone

    def snapshot(self) -> "Request":
        """Deep copy handed to the transport so later mutation cannot leak into a call."""
        return copy.deepcopy(self)
