"""Account queries against the v1.1 API."""

from __future__ import annotations

from typing import Any, Optional

from ..models.legacy import AccountCredentials
from ..transport.request import Request
from .base import Query
from .fields import CredentialsFields


class CredentialsReply:
    """Decoded credentials plus the raw body."""

    def __init__(self, data: bytes, account: AccountCredentials) -> None:
        self.data = data
        self.account = account

    def __repr__(self) -> str:
        return f"CredentialsReply(screen_name={self.account.screen_name!r})"


class VerifyCredentialsQuery(Query[CredentialsReply]):
    def decode(self, body: Any, raw: bytes) -> CredentialsReply:
        return CredentialsReply(raw, AccountCredentials.model_validate(body))


def verify_credentials(optional: Optional[CredentialsFields] = None) -> VerifyCredentialsQuery:
    """Report the authenticating account.

    API: 1.1/account/verify_credentials.json
    """
    request = Request(method="1.1/account/verify_credentials.json")
    if optional is not None:
        optional.apply(request.params)
    return VerifyCredentialsQuery(request)
