"""Filtered-stream rule management.

API: 2/tweets/search/stream/rules
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from ..models.tweets import Rule
from ..transport.request import Request
from .base import Query, Reply, parse_envelope

RULES_METHOD = "2/tweets/search/stream/rules"


@dataclass
class RulesReply(Reply):
    rules: list[Rule] = field(default_factory=list)

    @property
    def summary(self) -> dict[str, int]:
        """Counts reported by an update: created, not_created, deleted, ..."""
        if self.meta is None or self.meta.summary is None:
            return {}
        return self.meta.summary


def decode_rules(payload: Any, raw: bytes) -> RulesReply:
    envelope = parse_envelope(payload, raw)
    items = envelope.data_items()
    return RulesReply(
        data=raw,
        items=items,
        meta=envelope.meta,
        errors=envelope.errors,
        rules=[Rule.model_validate(item) for item in items],
    )


@dataclass
class Adds:
    """Rules to add."""

    rules: list[Rule] = field(default_factory=list)

    @classmethod
    def of(cls, *values: str, tag: Optional[str] = None) -> "Adds":
        return cls([Rule(value=value, tag=tag) for value in values])

    def body(self) -> dict[str, Any]:
        return {"add": [rule.model_dump(include={"value", "tag"}, exclude_none=True) for rule in self.rules]}


@dataclass
class Deletes:
    """Rule IDs to delete."""

    ids: list[str] = field(default_factory=list)

    def body(self) -> dict[str, Any]:
        return {"delete": {"ids": list(self.ids)}}


class RulesQuery(Query[RulesReply]):
    def decode(self, body: Any, raw: bytes) -> RulesReply:
        return decode_rules(body, raw)


def get(*ids: str) -> RulesQuery:
    """List the active rules, or only those with the given IDs."""
    request = Request(method=RULES_METHOD)
    if ids:
        request.params.set("ids", ",".join(ids))
    return RulesQuery(request)


def update(change: Union[Adds, Deletes], *, dry_run: bool = False) -> RulesQuery:
    """Add or delete rules; ``dry_run`` validates without applying."""
    if not isinstance(change, (Adds, Deletes)):
        raise TypeError(f"rules.update expects Adds or Deletes, got {type(change).__name__}")
    request = Request(method=RULES_METHOD, http_method="POST")
    if dry_run:
        request.params.set("dry_run", "true")
    request.set_json_body(json.dumps(change.body()).encode("utf-8"))
    return RulesQuery(request)
