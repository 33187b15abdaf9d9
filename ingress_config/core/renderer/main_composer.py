"""
Composer for the process-level nginx.conf.

Each operational endpoint is decided by its own small function so the
health probe, stub status and status API toggles stay independent.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ingress_config.config import Settings, settings as default_settings
from ingress_config.core.renderer.directives import (
    Edition,
    EndpointBlock,
    access_rules,
    gate,
)
from ingress_config.models.proxy import MainConfig

logger = logging.getLogger(__name__)

HEALTH_PATH = "/nginx-health"
STUB_STATUS_PATH = "/stub_status"
STATUS_API_PATH = "/api"

# Connection counters exported by the stub_status module
_OSS_STATUS_BODY = (
    "'{\"active\":$connections_active,\"reading\":$connections_reading,"
    "\"writing\":$connections_writing,\"waiting\":$connections_waiting}'"
)


@dataclass(frozen=True)
class MainPayload:
    """Everything the main templates need, already decided."""

    config: MainConfig
    status_port: int
    default_ssl_certificate: str
    default_ssl_certificate_key: str
    conf_d_include: str
    health: Optional[EndpointBlock]
    stub_status: Optional[EndpointBlock]
    status_api: EndpointBlock


def health_endpoint(config: MainConfig) -> Optional[EndpointBlock]:
    """The /nginx-health probe, present iff health_status is on."""
    return gate(
        config.health_status,
        lambda: EndpointBlock(
            path=HEALTH_PATH,
            access=access_rules(config.status_allow_ip),
            directives=("default_type text/plain", 'return 200 "healthy\\n"'),
        ),
    )


def stub_status_endpoint(config: MainConfig) -> Optional[EndpointBlock]:
    """The /stub_status endpoint, present iff stub_status is on."""
    return gate(
        config.stub_status,
        lambda: EndpointBlock(
            path=STUB_STATUS_PATH,
            access=access_rules(config.status_allow_ip),
            directives=("stub_status",),
        ),
    )


def status_api_endpoint(edition: Edition) -> EndpointBlock:
    """The status/metrics API. Always present and never restricted."""
    if edition is Edition.PLUS:
        return EndpointBlock(path=STATUS_API_PATH, directives=("api write=on",))
    return EndpointBlock(
        path=STATUS_API_PATH,
        directives=("default_type application/json", f"return 200 {_OSS_STATUS_BODY}"),
    )


def compose_main(
    config: MainConfig,
    edition: Edition = Edition.OSS,
    settings: Optional[Settings] = None,
) -> MainPayload:
    """
    Build the payload for a main nginx.conf template.

    Args:
        config: Process-level settings and endpoint toggles
        edition: nginx flavour the output targets
        settings: Renderer settings; the global settings when omitted

    Returns:
        MainPayload ready to bind to a template
    """
    settings = settings or default_settings
    payload = MainPayload(
        config=config,
        status_port=settings.status_port,
        default_ssl_certificate=settings.default_ssl_certificate,
        default_ssl_certificate_key=settings.default_ssl_certificate_key,
        conf_d_include=settings.conf_d_include,
        health=health_endpoint(config),
        stub_status=stub_status_endpoint(config),
        status_api=status_api_endpoint(edition),
    )
    logger.debug(
        f"Composed main config ({edition.value}): health={payload.health is not None} "
        f"stub_status={payload.stub_status is not None}"
    )
    return payload
