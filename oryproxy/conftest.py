from unittest.mock import Mock

import httpx
import pytest
from starlette.requests import Request

from oryproxy.config import new_default_config
from oryproxy.exchange import ExchangeContext, ProxyRequest
from oryproxy.host_config import resolve_host_config

UPSTREAM_URL = "https://upstream.example"


@pytest.fixture
def ory_config():
    return new_default_config(UPSTREAM_URL, cookie_domain="example.com")


@pytest.fixture
def host_config(ory_config):
    return resolve_host_config(ory_config)


@pytest.fixture
def mock_request():
    """Create a mock inbound Request for GET /.ory/health on example.com."""
    request = Mock(spec=Request)
    request.method = "GET"
    request.url.path = "/.ory/health"
    request.url.query = ""
    request.url.scheme = "http"
    request.headers = {"host": "example.com", "user-agent": "test-agent"}
    request.client.host = "192.168.1.100"
    return request


@pytest.fixture
def make_proxy_request(mock_request):
    """Pair the inbound request with the outgoing request the engine would build."""

    def _make(path="/.ory/health", headers=None):
        outgoing = httpx.Request(
            "GET",
            f"http://upstream.example{path}",
            headers=headers or {"user-agent": "test-agent"},
        )
        return ProxyRequest(
            incoming=mock_request, outgoing=outgoing, exchange=ExchangeContext()
        )

    return _make
