"""State that belongs to a single request/response round trip.

The engine creates one ``ExchangeContext`` per inbound request and passes it
to both rewrite hooks, so the value computed while rewriting the request is
available when the response of the same exchange is rewritten.
"""

import uuid
from dataclasses import dataclass, field
from typing import Optional

import httpx
from starlette.requests import Request

from oryproxy.errors import MissingOriginalBaseURLError


@dataclass
class ExchangeContext:
    exchange_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    original_base_url: Optional[str] = None

    def set_original_base_url(self, base_url: str) -> None:
        if self.original_base_url is not None:
            raise RuntimeError(
                f"Original base URL already set for exchange {self.exchange_id}"
            )
        self.original_base_url = base_url

    def require_original_base_url(self) -> str:
        if not self.original_base_url:
            raise MissingOriginalBaseURLError(
                f"could not get original host for exchange {self.exchange_id}"
            )
        return self.original_base_url


@dataclass
class ProxyRequest:
    """The inbound request and the request that will be sent upstream."""

    incoming: Request
    outgoing: httpx.Request
    exchange: ExchangeContext
