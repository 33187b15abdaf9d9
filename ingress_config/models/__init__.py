"""
Models describing the proxy configuration to render.
"""

from .proxy import (
    AccessRestriction,
    AllowFrom,
    HealthCheck,
    IngressConfig,
    JWTAuth,
    JWTRedirectLocation,
    Location,
    MainConfig,
    Server,
    Unset,
    Upstream,
    UpstreamServer,
)

__all__ = [
    "AccessRestriction",
    "AllowFrom",
    "HealthCheck",
    "IngressConfig",
    "JWTAuth",
    "JWTRedirectLocation",
    "Location",
    "MainConfig",
    "Server",
    "Unset",
    "Upstream",
    "UpstreamServer",
]
