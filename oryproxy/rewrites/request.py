import logging
from urllib.parse import unquote

from oryproxy.config import OryConfig
from oryproxy.exchange import ProxyRequest
from oryproxy.host_config import HostConfig
from oryproxy.utils import notify_observer, token_fingerprint

logger = logging.getLogger("uvicorn.error")

NO_CUSTOM_DOMAIN_REDIRECT_HEADER = "Ory-No-Custom-Domain-Redirect"
BASE_URL_REWRITE_HEADER = "Ory-Base-URL-Rewrite"
BASE_URL_REWRITE_TOKEN_HEADER = "Ory-Base-URL-Rewrite-Token"


def caller_host(proxy_request: ProxyRequest) -> str:
    """Host the browser believes it is talking to."""
    headers = proxy_request.incoming.headers
    return headers.get("x-forwarded-host") or headers.get("host", "")


def caller_scheme(proxy_request: ProxyRequest) -> str:
    """Scheme the browser believes it is talking to, http when unknown."""
    incoming = proxy_request.incoming
    return (
        incoming.headers.get("x-forwarded-proto")
        or incoming.url.scheme
        or "http"
    )


def encoded_prefix_length(raw_path: str, prefix: str) -> int:
    """
    Length of the leading part of a still-encoded path that decodes to prefix,
    or -1 when the decoded path does not start with it. Escapes after the
    prefix are left alone.
    """
    # each decoded character takes one to three encoded ones
    for end in range(len(prefix), min(len(raw_path), 3 * len(prefix)) + 1):
        if unquote(raw_path[:end]) == prefix:
            return end
    return -1


def strip_path_prefix(path: str, prefix: str) -> str:
    if not prefix:
        return path
    end = encoded_prefix_length(path, prefix)
    if end >= 0:
        return path[end:]
    logger.warning(
        f"[RequestRewrite] Path {path!r} does not start with {prefix!r}, forwarding it unchanged"
    )
    return path


def rewrite_request(
    proxy_request: ProxyRequest,
    host_config: HostConfig,
    body: bytes,
    config: OryConfig,
) -> bytes:
    """
    Point the outgoing request at the upstream and tell it the public base URL.

    The public base URL is stored on the exchange so the response of the same
    exchange can be rewritten back to it. The body is returned unchanged.
    """
    exchange = proxy_request.exchange
    notify_observer(config.request_logger, "Request", exchange, proxy_request, body)

    host = caller_host(proxy_request)
    proto = caller_scheme(proxy_request)
    rewrite_host = f"{proto}://{host}{host_config.path_prefix}"
    exchange.set_original_base_url(rewrite_host)

    outgoing = proxy_request.outgoing
    # the prefix is matched decoded, the rest keeps escapes like %2F
    raw_path = outgoing.url.raw_path.split(b"?", 1)[0].decode("ascii")
    outgoing.url = outgoing.url.copy_with(
        path=strip_path_prefix(raw_path, host_config.path_prefix)
    )
    outgoing.headers["Host"] = host_config.upstream_host
    outgoing.headers[NO_CUSTOM_DOMAIN_REDIRECT_HEADER] = "true"
    outgoing.headers[BASE_URL_REWRITE_HEADER] = rewrite_host

    # used for social sign in on localhost
    if config.ory_project_api_key:
        outgoing.headers[BASE_URL_REWRITE_TOKEN_HEADER] = config.ory_project_api_key
        logger.debug(
            f"[RequestRewrite] Attached rewrite token {token_fingerprint(config.ory_project_api_key)}"
        )

    outgoing.headers["X-Forwarded-Host"] = host
    outgoing.headers["X-Forwarded-Proto"] = proto

    logger.debug(
        f"[RequestRewrite] Exchange {exchange.exchange_id}: {proxy_request.incoming.url.path} -> {outgoing.url}"
    )
    return body
