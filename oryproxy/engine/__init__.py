from oryproxy.engine.proxy import OryProxy

__all__ = ["OryProxy"]
