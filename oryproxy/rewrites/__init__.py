from oryproxy.rewrites.request import rewrite_request
from oryproxy.rewrites.response import rewrite_response

__all__ = ["rewrite_request", "rewrite_response"]
