"""
Pydantic models for the proxy configuration handed to the renderer.

The models mirror the structures the ingress controller builds for every
render cycle: process-wide settings (MainConfig) and the virtual servers,
locations and upstream pools of an ingress (IngressConfig). All models are
frozen; the renderer only ever reads them.
"""

import re
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

# Characters that would terminate or open a directive inside rendered text
_UNSAFE_ARG = re.compile(r"[;{}\r\n]")


def _check_directive_arg(value: str) -> str:
    """Reject values that would break the directive grammar when rendered."""
    if _UNSAFE_ARG.search(value):
        raise ValueError(
            f"Value {value!r} contains characters not allowed in a directive argument"
        )
    if value.endswith("\\"):
        raise ValueError(f"Value {value!r} cannot end with a backslash")
    return value


DirectiveArg = Annotated[str, AfterValidator(_check_directive_arg)]


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# =============================================================================
# Access restriction (tri-state)
# =============================================================================


class Unset(_FrozenModel):
    """No access restriction configured."""

    kind: Literal["unset"] = "unset"


class AllowFrom(_FrozenModel):
    """Access restriction configured with an address or CIDR.

    An empty value is a legal configuration meaning "configured, but no
    address to restrict to"; it renders the same as Unset.
    """

    kind: Literal["allow"] = "allow"
    value: DirectiveArg = Field(default="", description="IP address or CIDR allowed through")

    @field_validator("value")
    @classmethod
    def validate_value(cls, v: str) -> str:
        v = v.strip()
        if any(ch.isspace() for ch in v):
            raise ValueError("Allowed address must be a single IP or CIDR")
        return v

    @property
    def is_empty(self) -> bool:
        return not self.value


AccessRestriction = Annotated[Union[Unset, AllowFrom], Field(discriminator="kind")]


# =============================================================================
# Main (process-level) configuration
# =============================================================================


class MainConfig(_FrozenModel):
    """Process-wide nginx settings and operational endpoint toggles."""

    worker_processes: DirectiveArg = Field(default="auto", description="worker_processes value")
    worker_cpu_affinity: Optional[DirectiveArg] = Field(None, description="worker_cpu_affinity value")
    worker_connections: DirectiveArg = Field(default="1024", description="worker_connections value")
    worker_rlimit_nofile: Optional[DirectiveArg] = Field(None, description="worker_rlimit_nofile value")
    worker_shutdown_timeout: Optional[DirectiveArg] = Field(
        None,
        description="Graceful shutdown timeout for old workers"
    )
    server_names_hash_max_size: DirectiveArg = Field(default="512")
    server_names_hash_bucket_size: Optional[DirectiveArg] = Field(None)
    server_tokens: DirectiveArg = Field(default="on", description="Global server_tokens policy")
    error_log_level: DirectiveArg = Field(default="notice")

    health_status: bool = Field(default=False, description="Expose the /nginx-health probe")
    stub_status: bool = Field(default=False, description="Expose the /stub_status endpoint")
    status_allow_ip: AccessRestriction = Field(
        default_factory=Unset,
        description="Address allowed to reach the health and stub status endpoints"
    )

    @field_validator("status_allow_ip", mode="before")
    @classmethod
    def coerce_status_allow_ip(cls, v):
        """Accept plain strings and None in place of the tagged variant."""
        if v is None:
            return Unset()
        if isinstance(v, str):
            return {"kind": "allow", "value": v}
        return v


# =============================================================================
# Ingress configuration
# =============================================================================


class UpstreamServer(_FrozenModel):
    """One backend address in an upstream pool."""

    address: DirectiveArg = Field(..., min_length=1, description="Backend IP or hostname")
    port: DirectiveArg = Field(..., min_length=1, description="Backend port")
    max_fails: int = Field(default=1, ge=0, description="Failures before the server is marked down; 0 disables")
    fail_timeout: DirectiveArg = Field(default="10s", min_length=1)
    slow_start: Optional[DirectiveArg] = Field(None, description="Weight ramp-up period (NGINX Plus)")


class Upstream(_FrozenModel):
    """A named pool of backend servers."""

    name: DirectiveArg = Field(..., min_length=1)
    upstream_servers: List[UpstreamServer] = Field(default_factory=list)
    lb_method: Optional[DirectiveArg] = Field(
        None,
        description="Load balancing method: least_conn, ip_hash, etc."
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if any(ch.isspace() for ch in v):
            raise ValueError("Upstream name cannot contain whitespace")
        return v


class JWTAuth(_FrozenModel):
    """JWT validation settings for a server or a single location."""

    key: DirectiveArg = Field(..., min_length=1, description="Path to the JWK key file")
    realm: DirectiveArg = Field(..., description="Authentication realm")
    token: Optional[DirectiveArg] = Field(None, description="Token source, e.g. $cookie_auth_token")
    redirect_location_name: Optional[DirectiveArg] = Field(
        None,
        description="Named location that unauthenticated requests are sent to"
    )

    @field_validator("realm")
    @classmethod
    def validate_realm(cls, v: str) -> str:
        if '"' in v or "\\" in v:
            raise ValueError("Realm cannot contain double quotes or backslashes")
        return v


class JWTRedirectLocation(_FrozenModel):
    """Named internal location redirecting to a login page."""

    name: DirectiveArg = Field(..., min_length=2)
    login_url: DirectiveArg = Field(..., min_length=1)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.startswith("@"):
            raise ValueError("Redirect location name must start with '@'")
        if any(ch.isspace() for ch in v):
            raise ValueError("Redirect location name cannot contain whitespace")
        return v


class HealthCheck(_FrozenModel):
    """Active health check attached to an upstream (NGINX Plus)."""

    upstream_name: DirectiveArg = Field(..., min_length=1)
    fails: int = Field(default=1, ge=0)
    interval: int = Field(default=5, ge=1, description="Seconds between probes")
    passes: int = Field(default=1, ge=0)
    headers: Dict[DirectiveArg, DirectiveArg] = Field(
        default_factory=dict,
        description="Headers sent with every probe"
    )

    @field_validator("headers")
    @classmethod
    def validate_headers(cls, v: Dict[str, str]) -> Dict[str, str]:
        for name, value in v.items():
            if not name or any(ch.isspace() for ch in name):
                raise ValueError(f"Invalid header name: {name!r}")
            if '"' in value or "\\" in value:
                raise ValueError(f"Header {name} value cannot contain double quotes or backslashes")
        return v


class Location(_FrozenModel):
    """A path-matched route proxied to an upstream."""

    path: DirectiveArg = Field(..., min_length=1)
    upstream: Upstream
    proxy_connect_timeout: DirectiveArg = Field(default="60s")
    proxy_read_timeout: DirectiveArg = Field(default="60s")
    client_max_body_size: DirectiveArg = Field(default="1m")
    proxy_buffering: bool = Field(default=True)
    jwt_auth: Optional[JWTAuth] = Field(
        None,
        description="Replaces the server-level JWT settings for this path"
    )


class Server(_FrozenModel):
    """One virtual host."""

    name: DirectiveArg = Field(..., min_length=1, description="server_name value")
    status_zone: Optional[DirectiveArg] = Field(None, description="Shared memory zone for stats (NGINX Plus)")
    server_tokens: DirectiveArg = Field(default="on")
    ports: List[int] = Field(default_factory=lambda: [80])

    ssl: bool = Field(default=False)
    ssl_certificate: Optional[DirectiveArg] = Field(None)
    ssl_certificate_key: Optional[DirectiveArg] = Field(None)
    ssl_ports: List[int] = Field(default_factory=lambda: [443])
    ssl_redirect: bool = Field(default=False, description="Redirect plain HTTP to HTTPS (needs ssl)")
    http2: bool = Field(default=False)

    jwt_auth: Optional[JWTAuth] = Field(None)
    health_checks: Dict[str, HealthCheck] = Field(default_factory=dict)
    jwt_redirect_locations: List[JWTRedirectLocation] = Field(default_factory=list)
    locations: List[Location] = Field(default_factory=list)

    @field_validator("ports", "ssl_ports")
    @classmethod
    def validate_ports(cls, v: List[int]) -> List[int]:
        for port in v:
            if port < 1 or port > 65535:
                raise ValueError(f"Port {port} must be between 1 and 65535")
        return v

    @model_validator(mode="after")
    def validate_ssl_material(self) -> "Server":
        """TLS needs both a certificate and a key."""
        if self.ssl and not (self.ssl_certificate and self.ssl_certificate_key):
            raise ValueError("ssl requires ssl_certificate and ssl_certificate_key")
        return self

    @model_validator(mode="after")
    def validate_listen_ports(self) -> "Server":
        """A port cannot listen both with and without TLS."""
        if self.ssl:
            overlap = sorted(set(self.ports) & set(self.ssl_ports))
            if overlap:
                raise ValueError(f"Ports {overlap} appear in both ports and ssl_ports")
        return self


class IngressConfig(_FrozenModel):
    """Virtual servers and upstream pools generated from one ingress resource."""

    servers: List[Server] = Field(default_factory=list)
    upstreams: List[Upstream] = Field(default_factory=list)
    keepalive: Optional[DirectiveArg] = Field(
        None,
        description="Idle keepalive connections kept per upstream"
    )
