"""Continuation-token bookkeeping for paginated queries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..transport.request import Params


@dataclass
class PaginationCursor:
    """Where a paginated query resumes.

    ``token`` is the continuation token echoed by the previous reply, or None.
    ``exhausted`` is set once a reply arrived without a token. A fresh cursor
    reports more pages: nothing is known until the first call.
    """

    token: Optional[str] = None
    exhausted: bool = False

    def has_more_pages(self) -> bool:
        return not self.exhausted

    def reset_page_token(self) -> None:
        self.token = None
        self.exhausted = False

    def update(self, next_token: Optional[str]) -> None:
        """Record the token of a successful reply; absent or empty means last page."""
        if next_token:
            self.token = next_token
            self.exhausted = False
        else:
            self.token = None
            self.exhausted = True

    def apply(self, params: Params, name: str) -> None:
        if self.token:
            params.set(name, self.token)
        else:
            params.set(name)
