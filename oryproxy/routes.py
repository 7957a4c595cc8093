from fastapi import APIRouter, Request

from oryproxy.engine import OryProxy

PROXY_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]


def create_router(proxy: OryProxy, prefix: str) -> APIRouter:
    """Mount the proxy under ``prefix``; everything below it is forwarded."""
    prefix = prefix.rstrip("/")
    router = APIRouter(prefix=prefix)

    async def proxy_all(request: Request):
        """Catch-all route that proxies all requests to the Ory project."""
        return await proxy.forward(request)

    if prefix:
        router.add_api_route(
            "", proxy_all, methods=PROXY_METHODS, include_in_schema=False
        )
    router.add_api_route(
        "/{path:path}", proxy_all, methods=PROXY_METHODS, include_in_schema=False
    )
    return router
