from oryproxy.config import OryConfig, new_default_config
from oryproxy.engine import OryProxy
from oryproxy.errors import (
    MissingOriginalBaseURLError,
    OryProxyError,
    ProxyConfigurationError,
)
from oryproxy.exchange import ExchangeContext, ProxyRequest
from oryproxy.host_config import ORY_PATH_PREFIX, HostConfig, resolve_host_config
from oryproxy.rewrites import rewrite_request, rewrite_response

__all__ = [
    "ORY_PATH_PREFIX",
    "ExchangeContext",
    "HostConfig",
    "MissingOriginalBaseURLError",
    "OryConfig",
    "OryProxy",
    "OryProxyError",
    "ProxyConfigurationError",
    "ProxyRequest",
    "new_default_config",
    "resolve_host_config",
    "rewrite_request",
    "rewrite_response",
]
