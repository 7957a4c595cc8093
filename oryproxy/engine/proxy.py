import logging
from typing import Optional
from urllib.parse import quote

import httpx
from fastapi import HTTPException
from fastapi.responses import Response
from opentelemetry import trace
from starlette.requests import Request

from oryproxy.config import OryConfig
from oryproxy.engine.headers import (
    prepare_headers,
    response_headers,
    rewrite_upstream_headers,
)
from oryproxy.errors import MissingOriginalBaseURLError, ProxyConfigurationError
from oryproxy.exchange import ExchangeContext, ProxyRequest
from oryproxy.host_config import HostConfig, resolve_host_config
from oryproxy.rewrites import rewrite_request, rewrite_response

tracer = trace.get_tracer(__name__)
logger = logging.getLogger("uvicorn.error")


def build_target_url(request: Request, host_config: HostConfig) -> str:
    """Address the inbound path and query at the host the proxy dials."""
    raw_path = request.scope.get("raw_path")
    if raw_path:
        path = raw_path.split(b"?", 1)[0].decode("latin-1")
    else:
        path = quote(request.url.path)
    query = request.url.query
    url = f"{host_config.target_scheme}://{host_config.target_host}{path}"
    return f"{url}?{query}" if query else url


class OryProxy:
    """
    Reverse proxy in front of an Ory project.

    Every exchange runs resolve -> request rewrite -> forward -> response
    rewrite. Nothing is retried; upstream failures become 502/504 responses.
    """

    def __init__(
        self,
        config: OryConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.proxy_timeout),
                follow_redirects=False,  # redirects are rewritten, not followed
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def build_outgoing_request(
        self, request: Request, host_config: HostConfig, body: bytes
    ) -> httpx.Request:
        return self.client.build_request(
            method=request.method,
            url=build_target_url(request, host_config),
            headers=prepare_headers(request, host_config),
            content=body,
        )

    async def forward(self, request: Request) -> Response:
        exchange = ExchangeContext()

        with tracer.start_as_current_span("ory_proxy_request") as span:
            span.set_attribute("proxy.method", request.method)

            try:
                host_config = resolve_host_config(self.config, request)
            except ProxyConfigurationError as e:
                logger.error(f"[Proxy] Refusing to forward {request.url.path}: {e}")
                span.set_attribute("proxy.error", "configuration")
                raise HTTPException(
                    status_code=502, detail="Bad gateway - proxy is misconfigured"
                )
            span.set_attribute("proxy.upstream_host", host_config.upstream_host)

            body = await request.body()
            outgoing = self.build_outgoing_request(request, host_config, body)
            proxy_request = ProxyRequest(
                incoming=request, outgoing=outgoing, exchange=exchange
            )
            rewritten_body = rewrite_request(proxy_request, host_config, body, self.config)
            if rewritten_body is not body:
                proxy_request.outgoing = self._replace_content(
                    proxy_request.outgoing, rewritten_body
                )

            target_url = str(proxy_request.outgoing.url)
            span.set_attribute("proxy.target_url", target_url)
            logger.debug(
                f"[Proxy] Exchange {exchange.exchange_id}: {request.method} {request.url.path} -> {target_url}"
            )

            try:
                response = await self.client.send(proxy_request.outgoing)
                span.set_attribute("proxy.status_code", response.status_code)

                rewrite_upstream_headers(
                    response, host_config, exchange.require_original_base_url()
                )
                content = rewrite_response(
                    response, host_config, response.content, exchange, self.config
                )

            except httpx.TimeoutException as e:
                logger.error(f"[Proxy] Timeout for {target_url}: {e}")
                span.set_attribute("proxy.error", "timeout")
                raise HTTPException(status_code=504, detail="Gateway timeout")

            except httpx.ConnectError as e:
                logger.error(f"[Proxy] Failed to connect to upstream {target_url}: {e}")
                span.set_attribute("proxy.error", "connection_failed")
                raise HTTPException(
                    status_code=502, detail="Bad gateway - cannot connect to upstream"
                )

            except MissingOriginalBaseURLError as e:
                logger.error(f"[Proxy] {e}")
                span.set_attribute("proxy.error", "missing_original_base_url")
                raise HTTPException(status_code=502, detail="Bad gateway")

            except httpx.HTTPError as e:
                logger.error(f"[Proxy] Proxy error for {target_url}: {e}", exc_info=True)
                span.set_attribute("proxy.error", str(e))
                raise HTTPException(status_code=502, detail=f"Bad gateway: {str(e)}")

            result = Response(content=content, status_code=response.status_code)
            for name, value in response_headers(response):
                result.headers.append(name, value)
            return result

    @staticmethod
    def _replace_content(outgoing: httpx.Request, content: bytes) -> httpx.Request:
        headers = httpx.Headers(
            [
                (name, value)
                for name, value in outgoing.headers.multi_items()
                if name.lower() != "content-length"
            ]
        )
        return httpx.Request(
            outgoing.method,
            outgoing.url,
            headers=headers,
            content=content,
            extensions=outgoing.extensions,
        )
