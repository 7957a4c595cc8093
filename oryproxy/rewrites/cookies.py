"""
Parsing and re-serialization of upstream Set-Cookie headers.

Cookies are re-issued by the proxy with their attributes unchanged; only the
serialized header changes. Values are kept exactly as the upstream sent them
(no re-quoting), since session tokens are opaque to the proxy.
"""

import logging
from dataclasses import dataclass, replace
from http.cookies import CookieError, Morsel
from typing import List, Optional

import httpx

logger = logging.getLogger("uvicorn.error")


@dataclass(frozen=True)
class ResponseCookie:
    name: str
    value: str
    path: str = ""
    domain: str = ""
    expires: str = ""
    max_age: str = ""
    secure: bool = False
    http_only: bool = False
    same_site: str = ""

    def with_domain(self, domain: str) -> "ResponseCookie":
        return replace(self, domain=domain)

    def to_header(self) -> str:
        """Serialize into a Set-Cookie header value."""
        morsel = Morsel()
        morsel.set(self.name, self.value, self.value)
        morsel["path"] = self.path
        morsel["domain"] = self.domain
        morsel["expires"] = self.expires
        morsel["max-age"] = self.max_age
        morsel["secure"] = self.secure
        morsel["httponly"] = self.http_only
        morsel["samesite"] = self.same_site
        return morsel.OutputString()


def parse_set_cookie(set_cookie: str) -> Optional[ResponseCookie]:
    """
    Parse a single Set-Cookie header value.

    Unknown attributes are ignored. Returns None when the header carries no
    usable name=value pair.
    """
    parts = [p.strip() for p in set_cookie.split(";")]
    name, sep, value = parts[0].partition("=")
    name = name.strip()
    if not sep or not name:
        return None

    attrs = {}
    for part in parts[1:]:
        if not part:
            continue
        key, _, attr_value = part.partition("=")
        attrs[key.strip().lower()] = attr_value.strip()

    cookie = ResponseCookie(
        name=name,
        value=value.strip(),
        path=attrs.get("path", ""),
        domain=attrs.get("domain", ""),
        expires=attrs.get("expires", ""),
        max_age=attrs.get("max-age", ""),
        secure="secure" in attrs,
        http_only="httponly" in attrs,
        same_site=attrs.get("samesite", ""),
    )
    try:
        # Morsel rejects names that are not valid cookie tokens
        cookie.to_header()
    except CookieError as e:
        logger.warning(f"[Cookies] Dropping cookie with invalid name {name!r}: {e}")
        return None
    return cookie


def parse_set_cookies(set_cookies: List[str]) -> List[ResponseCookie]:
    cookies = []
    for header in set_cookies:
        cookie = parse_set_cookie(header)
        if cookie is None:
            logger.warning(f"[Cookies] Failed to parse cookie: {header}")
            continue
        cookies.append(cookie)
    return cookies


def replace_set_cookies(response: httpx.Response, set_cookies: List[str]) -> None:
    """Drop all Set-Cookie headers of the response and add one per given value."""
    headers = [
        (name, value)
        for name, value in response.headers.multi_items()
        if name.lower() != "set-cookie"
    ]
    headers.extend(("set-cookie", value) for value in set_cookies)
    response.headers = httpx.Headers(headers)
