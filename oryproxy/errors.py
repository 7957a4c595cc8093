class OryProxyError(Exception):
    """Base class for failures raised while proxying an exchange."""


class ProxyConfigurationError(OryProxyError):
    """The configured Ory project URL cannot be used as an upstream."""


class MissingOriginalBaseURLError(OryProxyError):
    """The response was handed over for an exchange whose request was never rewritten."""
