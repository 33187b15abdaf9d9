"""
Directive-level building blocks shared by the composers.

Everything here is a pure function of its arguments: it decides which
directives a block carries and in what order. Turning the result into text
is left to the macros in templates/_directives.j2.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Mapping, Optional, Tuple, TypeVar

from ingress_config.models.proxy import AllowFrom, JWTAuth, Unset, UpstreamServer

T = TypeVar("T")


class Edition(str, Enum):
    """nginx flavour a template targets."""
    OSS = "oss"
    PLUS = "plus"


@dataclass(frozen=True)
class EndpointBlock:
    """An operational location block (health probe, stub status, status API)."""

    path: str
    directives: Tuple[str, ...]
    access: Tuple[str, ...] = ()

    @property
    def restricted(self) -> bool:
        return bool(self.access)

    @property
    def lines(self) -> Tuple[str, ...]:
        # allow/deny sit directly in front of the business directives;
        # restricted endpoints also stay out of the access log
        if not self.access:
            return self.directives
        return ("access_log off",) + self.access + self.directives


def gate(enabled: bool, build: Callable[[], T]) -> Optional[T]:
    """Build a block only when its toggle is on."""
    if not enabled:
        return None
    return build()


def access_rules(restriction) -> Tuple[str, ...]:
    """
    Access rules for an endpoint guarded by an optional allow-list entry.

    Unset and an empty AllowFrom both leave the endpoint open; a non-empty
    AllowFrom admits that address and denies everyone else.
    """
    if isinstance(restriction, Unset):
        return ()
    if isinstance(restriction, AllowFrom):
        if restriction.is_empty:
            return ()
        return (f"allow {restriction.value}", "deny all")
    raise TypeError(f"Unsupported access restriction: {restriction!r}")


def upstream_server_args(server: UpstreamServer, edition: Edition) -> str:
    """Arguments of a `server` line inside an upstream block."""
    # max_fails=0 is a valid setting (checks disabled) and is always written
    args = f"{server.address}:{server.port} max_fails={server.max_fails} fail_timeout={server.fail_timeout}"
    if edition is Edition.PLUS and server.slow_start:
        args += f" slow_start={server.slow_start}"
    return args


def jwt_directives(auth: Optional[JWTAuth]) -> Tuple[str, ...]:
    """auth_jwt directives for a server or location, empty when auth is absent."""
    if auth is None:
        return ()
    auth_jwt = f'auth_jwt "{auth.realm}"'
    if auth.token:
        auth_jwt += f" token={auth.token}"
    lines = (f"auth_jwt_key_file {auth.key}", auth_jwt)
    if auth.redirect_location_name:
        lines += (f"error_page 401 {auth.redirect_location_name}",)
    return lines


def sorted_items(mapping: Mapping[str, T]) -> Tuple[Tuple[str, T], ...]:
    """Mapping items in key order, so output does not depend on insertion order."""
    return tuple(sorted(mapping.items(), key=lambda item: item[0]))


def listen_args(ports: Iterable[int], suffix: str = "") -> Tuple[str, ...]:
    return tuple(f"{port}{suffix}" for port in ports)
