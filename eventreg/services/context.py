from dataclasses import dataclass, field
from typing import Optional

from eventreg.models.user import User


@dataclass(frozen=True)
class Identity:
    """Decoded token subject."""

    email: str


@dataclass(frozen=True)
class RequestContext:
    """Everything a request knows about its caller.

    Built once per request by the API dependencies and handed to the
    services explicitly; nothing about the caller lives in module state.
    """

    account: User
    token: str
    request_id: Optional[str] = field(default=None)

    @property
    def account_id(self) -> int:
        return self.account.id
