import logging

import httpx

from oryproxy.config import OryConfig
from oryproxy.exchange import ExchangeContext
from oryproxy.host_config import HostConfig
from oryproxy.rewrites.cookies import parse_set_cookies, replace_set_cookies
from oryproxy.utils import notify_observer

logger = logging.getLogger("uvicorn.error")


def rewrite_body(body: bytes, upstream_origin: str, original_base_url: str) -> bytes:
    """Replace every literal occurrence of the upstream origin with the public base URL."""
    if not body:
        return body
    return body.replace(upstream_origin.encode("utf-8"), original_base_url.encode("utf-8"))


def reissue_cookies(response: httpx.Response) -> int:
    """Replace all Set-Cookie headers with re-serialized copies. Returns the cookie count."""
    cookies = parse_set_cookies(response.headers.get_list("set-cookie"))
    replace_set_cookies(response, [cookie.to_header() for cookie in cookies])
    return len(cookies)


def rewrite_response(
    response: httpx.Response,
    host_config: HostConfig,
    body: bytes,
    exchange: ExchangeContext,
    config: OryConfig,
) -> bytes:
    """
    Undo the host substitution on the way back to the browser.

    Embedded upstream URLs in the body are pointed at the public base URL of
    the exchange and cookies are re-issued, unless the upstream redirects to
    an absolute https location (e.g. a cross-domain OAuth hop), in which case
    its cookies are passed through as they are.

    Raises MissingOriginalBaseURLError when the request of this exchange was
    never rewritten.
    """
    notify_observer(config.response_logger, "Response", exchange, response, body)

    original_base_url = exchange.require_original_base_url()

    body = rewrite_body(body, host_config.upstream_origin, original_base_url)

    if not response.headers.get("location", "").startswith("https"):
        count = reissue_cookies(response)
        if count:
            logger.debug(
                f"[ResponseRewrite] Exchange {exchange.exchange_id}: re-issued {count} cookie(s)"
            )

    return body
