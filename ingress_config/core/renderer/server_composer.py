"""
Composer for per-ingress virtual server configuration.

Resolves everything that depends on more than one field of the model
(TLS listeners, the HTTPS redirect, JWT override, named redirect
locations) so the templates only have to lay out text.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ingress_config.core.renderer.directives import (
    Edition,
    jwt_directives,
    listen_args,
    sorted_items,
    upstream_server_args,
)
from ingress_config.core.renderer.errors import RenderError
from ingress_config.models.proxy import (
    IngressConfig,
    JWTAuth,
    JWTRedirectLocation,
    Location,
    Server,
    Upstream,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocationPayload:
    location: Location
    # Directives from the location's own JWTAuth only; server auth is never merged in
    jwt: Tuple[str, ...]


@dataclass(frozen=True)
class HealthCheckPayload:
    upstream_name: str
    interval: int
    fails: int
    passes: int
    headers: Tuple[Tuple[str, str], ...]


@dataclass(frozen=True)
class ServerPayload:
    server: Server
    listen: Tuple[str, ...]
    tls: bool
    redirect_to_https: bool
    jwt: Tuple[str, ...]
    locations: Tuple[LocationPayload, ...]
    redirect_locations: Tuple[JWTRedirectLocation, ...]
    health_checks: Tuple[HealthCheckPayload, ...]


@dataclass(frozen=True)
class UpstreamPayload:
    name: str
    lb_method: Optional[str]
    servers: Tuple[str, ...]


@dataclass(frozen=True)
class IngressPayload:
    servers: Tuple[ServerPayload, ...]
    upstreams: Tuple[UpstreamPayload, ...]
    keepalive: Optional[str]


def compose_location(location: Location) -> LocationPayload:
    return LocationPayload(location=location, jwt=jwt_directives(location.jwt_auth))


def resolve_redirect_locations(server: Server, field: str) -> Tuple[JWTRedirectLocation, ...]:
    """
    Named redirect locations referenced by the server's JWT settings.

    Every JWTAuth of the server (server-level first, then locations in order)
    contributes its redirect name; each distinct name yields one block.

    Raises:
        RenderError: If a referenced name has no matching JWTRedirectLocation
    """
    available: Dict[str, JWTRedirectLocation] = {}
    for redirect in server.jwt_redirect_locations:
        available.setdefault(redirect.name, redirect)

    references: List[Tuple[str, Optional[JWTAuth]]] = [(f"{field}.jwt_auth", server.jwt_auth)]
    references.extend(
        (f"{field}.locations[{i}].jwt_auth", location.jwt_auth)
        for i, location in enumerate(server.locations)
    )

    resolved: List[JWTRedirectLocation] = []
    seen = set()
    for ref_field, auth in references:
        if auth is None or not auth.redirect_location_name:
            continue
        name = auth.redirect_location_name
        if name in seen:
            continue
        if name not in available:
            raise RenderError(
                f"no JWT redirect location named {name}",
                field=f"{ref_field}.redirect_location_name",
            )
        seen.add(name)
        resolved.append(available[name])
    return tuple(resolved)


def compose_server(
    server: Server,
    edition: Edition = Edition.OSS,
    field: str = "server",
) -> ServerPayload:
    """
    Build the payload for one virtual server block.

    JWT redirect names are resolved for NGINX Plus only.
    """
    redirect_locations: Tuple[JWTRedirectLocation, ...] = ()
    if edition is Edition.PLUS:
        redirect_locations = resolve_redirect_locations(server, field)

    listen = listen_args(server.ports)
    if server.ssl:
        listen += listen_args(server.ssl_ports, " ssl http2" if server.http2 else " ssl")
    elif server.ssl_redirect:
        logger.debug(f"Ignoring ssl_redirect for {server.name}: TLS is not enabled")

    health_checks = tuple(
        HealthCheckPayload(
            upstream_name=check.upstream_name,
            interval=check.interval,
            fails=check.fails,
            passes=check.passes,
            headers=sorted_items(check.headers),
        )
        for _, check in sorted_items(server.health_checks)
    )

    return ServerPayload(
        server=server,
        listen=listen,
        tls=server.ssl,
        redirect_to_https=server.ssl and server.ssl_redirect,
        jwt=jwt_directives(server.jwt_auth),
        locations=tuple(compose_location(location) for location in server.locations),
        redirect_locations=redirect_locations,
        health_checks=health_checks,
    )


def compose_upstream(upstream: Upstream, edition: Edition) -> UpstreamPayload:
    return UpstreamPayload(
        name=upstream.name,
        lb_method=upstream.lb_method,
        servers=tuple(upstream_server_args(s, edition) for s in upstream.upstream_servers),
    )


def compose_ingress(config: IngressConfig, edition: Edition = Edition.OSS) -> IngressPayload:
    """
    Build the payload for an ingress template.

    Servers, locations and upstream servers keep their input order.

    Raises:
        RenderError: If a JWT redirect name cannot be resolved (NGINX Plus)
    """
    payload = IngressPayload(
        servers=tuple(
            compose_server(server, edition, field=f"servers[{i}]")
            for i, server in enumerate(config.servers)
        ),
        upstreams=tuple(compose_upstream(upstream, edition) for upstream in config.upstreams),
        keepalive=config.keepalive,
    )
    logger.debug(
        f"Composed ingress config ({edition.value}): {len(payload.servers)} servers, "
        f"{len(payload.upstreams)} upstreams"
    )
    return payload
