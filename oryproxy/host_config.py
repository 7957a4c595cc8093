import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx
from starlette.requests import Request

from oryproxy.config import OryConfig
from oryproxy.errors import ProxyConfigurationError

logger = logging.getLogger("uvicorn.error")

# The prefix stripped from outbound paths and appended to the public base URL.
# It is independent of the route prefix the proxy is mounted under.
ORY_PATH_PREFIX = "/.ory"


@dataclass(frozen=True)
class HostConfig:
    """Routing parameters for a single exchange."""

    cookie_domain: str
    upstream_host: str
    upstream_scheme: str
    target_host: str
    target_scheme: str
    path_prefix: str
    trust_forwarded_headers: bool
    cors_enabled: bool
    cors_options: Dict[str, Any] = field(default_factory=dict)

    @property
    def upstream_origin(self) -> str:
        return f"{self.upstream_scheme}://{self.upstream_host}"


def resolve_host_config(
    config: OryConfig, request: Optional[Request] = None
) -> HostConfig:
    """Derive the HostConfig of an exchange from the process configuration.

    The upstream is always addressed as https towards the outside world but
    dialed over plain http. Raises ProxyConfigurationError when the project
    URL cannot be parsed or carries no host.
    """
    try:
        url = httpx.URL(config.ory_project_url)
    except (httpx.InvalidURL, TypeError) as e:
        raise ProxyConfigurationError(
            f"Invalid Ory project URL {config.ory_project_url!r}: {e}"
        ) from e

    upstream = url.netloc.decode("ascii")
    if not url.host:
        raise ProxyConfigurationError(
            f"Ory project URL {config.ory_project_url!r} has no host"
        )

    logger.debug(f"[HostConfig] Resolved upstream {upstream}")
    return HostConfig(
        cookie_domain=config.cookie_domain,
        upstream_host=upstream,
        upstream_scheme="https",
        target_host=upstream,
        target_scheme="http",
        path_prefix=ORY_PATH_PREFIX,
        trust_forwarded_headers=config.trust_x_forwarded_headers,
        cors_enabled=config.cors_enabled,
        cors_options=dict(config.cors_options),
    )
