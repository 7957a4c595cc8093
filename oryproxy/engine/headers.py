import logging
from typing import List, Tuple
from urllib.parse import urlparse

import httpx
from starlette.requests import Request

from oryproxy.host_config import HostConfig
from oryproxy.rewrites.cookies import parse_set_cookie, replace_set_cookies

logger = logging.getLogger("uvicorn.error")

# Hop-by-hop headers that should NOT be forwarded (RFC 2616)
HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
}

# Set by httpx from the outgoing URL and body
RECOMPUTED_REQUEST_HEADERS = {"host", "content-length"}

# httpx decodes these transparently, so the body can always be rewritten
ACCEPTED_ENCODINGS = "gzip, deflate"

# The body handed back is already decoded and may have changed length
STALE_RESPONSE_HEADERS = {"content-length", "content-encoding"}


def prepare_headers(request: Request, host_config: HostConfig) -> httpx.Headers:
    """
    Prepare headers for forwarding to the upstream.
    Removes hop-by-hop headers and maintains X-Forwarded-For. Repeated
    headers such as several Cookie lines are all kept.
    """
    headers = httpx.Headers(
        [
            (name.lower(), value)
            for name, value in request.headers.items()
            if name.lower() not in HOP_BY_HOP_HEADERS
            and name.lower() not in RECOMPUTED_REQUEST_HEADERS
        ]
    )

    headers["accept-encoding"] = ACCEPTED_ENCODINGS

    # X-Forwarded-For: append the client only when the edge is trusted
    client_ip = request.client.host if request.client else "unknown"
    existing_xff = headers.get("x-forwarded-for", "")
    if host_config.trust_forwarded_headers and existing_xff:
        headers["x-forwarded-for"] = f"{existing_xff}, {client_ip}"
    else:
        headers["x-forwarded-for"] = client_ip

    return headers


def response_headers(response: httpx.Response) -> List[Tuple[str, str]]:
    """Upstream headers that may be passed on to the browser, repeated ones kept."""
    return [
        (name, value)
        for name, value in response.headers.multi_items()
        if name.lower() not in HOP_BY_HOP_HEADERS
        and name.lower() not in STALE_RESPONSE_HEADERS
    ]


def rewrite_location_header(location: str, host_config: HostConfig, original_base_url: str) -> str:
    """
    Rewrite an absolute Location pointing at the upstream to the public base URL.
    Relative and external locations are returned as-is.
    """
    if not location:
        return location

    parsed = urlparse(location)
    if not parsed.netloc or parsed.netloc.lower() != host_config.upstream_host.lower():
        return location

    query = f"?{parsed.query}" if parsed.query else ""
    fragment = f"#{parsed.fragment}" if parsed.fragment else ""
    return f"{original_base_url}{parsed.path}{query}{fragment}"


def rewrite_cookie_domains(response: httpx.Response, host_config: HostConfig) -> None:
    """
    Scope cookies the upstream issued for itself to the configured cookie domain.
    Every other Set-Cookie header is left byte for byte as the upstream sent it.
    """
    if not host_config.cookie_domain or "set-cookie" not in response.headers:
        return

    upstream_hostname = urlparse(f"//{host_config.upstream_host}").hostname or ""
    set_cookies = []
    changed = False
    for header in response.headers.get_list("set-cookie"):
        cookie = parse_set_cookie(header)
        if cookie is not None and cookie.domain.lstrip(".").lower() in ("", upstream_hostname):
            header = cookie.with_domain(host_config.cookie_domain).to_header()
            changed = True
        set_cookies.append(header)
    if changed:
        replace_set_cookies(response, set_cookies)


def rewrite_upstream_headers(
    response: httpx.Response, host_config: HostConfig, original_base_url: str
) -> None:
    """Header rewrites the engine applies before the response hook runs."""
    location = response.headers.get("location")
    if location:
        rewritten = rewrite_location_header(location, host_config, original_base_url)
        if rewritten != location:
            logger.debug(f"[Proxy] Rewrote Location {location} -> {rewritten}")
            response.headers["location"] = rewritten
    rewrite_cookie_domains(response, host_config)
