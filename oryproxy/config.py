"""Process-wide proxy configuration.

``OryConfig`` is built once at startup, either from the environment
(``OryConfig.from_env``) or from keyword options (``new_default_config``),
and is passed explicitly to everything that needs it. It is never mutated
afterwards, so it can be shared by all exchanges without locking.
"""

from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from oryproxy import vars as env

if TYPE_CHECKING:
    import httpx

    from oryproxy.exchange import ExchangeContext, ProxyRequest


# Observation callbacks. They are called once per request and once per
# response of the same exchange, possibly concurrently across exchanges.
RequestLogger = Callable[["ExchangeContext", "ProxyRequest", bytes], Any]
ResponseLogger = Callable[["ExchangeContext", "httpx.Response", bytes], Any]


@dataclass(frozen=True)
class OryConfig:
    # URL of the Ory project API, usually https://<slug>.projects.oryapis.com
    ory_project_url: str
    # Sent as Ory-Base-URL-Rewrite-Token, used for social sign in
    ory_project_api_key: str = ""
    # Domain written onto the cookies handed back to the browser
    cookie_domain: str = "localhost"
    # Route prefix the proxy is mounted under, e.g. /.ory or /.ory/proxy
    proxy_route_path_prefix: str = "/.ory"
    cors_enabled: bool = False
    # Keyword arguments for starlette's CORSMiddleware
    cors_options: Dict[str, Any] = field(default_factory=dict)
    trust_x_forwarded_headers: bool = False
    request_logger: Optional[RequestLogger] = None
    response_logger: Optional[ResponseLogger] = None
    proxy_timeout: int = 300

    @classmethod
    def from_env(cls) -> "OryConfig":
        cors_options: Dict[str, Any] = {}
        if env.ORY_CORS_ALLOWED_ORIGINS:
            cors_options = {
                "allow_origins": env.ORY_CORS_ALLOWED_ORIGINS,
                "allow_credentials": env.ORY_CORS_ALLOW_CREDENTIALS,
                "allow_methods": ["*"],
                "allow_headers": ["*"],
            }
        return cls(
            ory_project_url=env.ORY_PROJECT_URL,
            ory_project_api_key=env.ORY_PROJECT_API_KEY,
            cookie_domain=env.ORY_COOKIE_DOMAIN,
            proxy_route_path_prefix=env.ORY_PROXY_PATH_PREFIX,
            cors_enabled=env.ORY_CORS_ENABLED,
            cors_options=cors_options,
            trust_x_forwarded_headers=env.ORY_TRUST_X_FORWARDED_HEADERS,
            proxy_timeout=env.ORY_PROXY_TIMEOUT,
        )


_OPTION_NAMES = {f.name for f in fields(OryConfig)} - {"ory_project_url"}


def new_default_config(ory_project_url: str, **options: Any) -> OryConfig:
    """Build a config with defaults for everything but the project URL.

    Accepts the same names as the ``OryConfig`` fields, e.g.
    ``new_default_config(url, cookie_domain="example.com", cors_enabled=True)``.
    """
    unknown = set(options) - _OPTION_NAMES
    if unknown:
        raise TypeError(f"Unknown proxy config option(s): {', '.join(sorted(unknown))}")
    return OryConfig(ory_project_url=ory_project_url, **options)
