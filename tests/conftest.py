"""
Global test fixtures.

Provides a renderer, representative models, and a crossplane-backed
parser for checking that rendered text is well-formed nginx syntax.
"""

import crossplane
import pytest

from ingress_config.core.renderer import ConfigRenderer
from ingress_config.models import (
    HealthCheck,
    IngressConfig,
    JWTAuth,
    JWTRedirectLocation,
    Location,
    MainConfig,
    Server,
    Upstream,
    UpstreamServer,
)


def iter_statements(statements):
    """Walk a crossplane statement list depth-first."""
    for stmt in statements:
        yield stmt
        yield from iter_statements(stmt.get("block", []))


def find_locations(parsed, path):
    """All location statements whose last argument is path."""
    return [
        stmt
        for stmt in iter_statements(parsed)
        if stmt["directive"] == "location" and stmt["args"] and stmt["args"][-1] == path
    ]


def directive_names(stmt):
    return [child["directive"] for child in stmt.get("block", [])]


@pytest.fixture
def renderer():
    """Create a ConfigRenderer instance."""
    return ConfigRenderer()


@pytest.fixture
def parse_nginx(tmp_path):
    """Parse rendered text with crossplane and fail on any syntax error."""

    def _parse(text):
        conf_file = tmp_path / "rendered.conf"
        conf_file.write_text(text)
        payload = crossplane.parse(
            str(conf_file),
            single=True,
            catch_errors=True,
            check_ctx=False,
            check_args=False,
        )
        assert payload["status"] == "ok", payload["errors"]
        return payload["config"][0]["parsed"]

    return _parse


@pytest.fixture
def main_config():
    """MainConfig with both operational endpoints off."""
    return MainConfig(
        server_names_hash_max_size="512",
        server_tokens="off",
        worker_processes="auto",
        worker_cpu_affinity="auto",
        worker_shutdown_timeout="1m",
        worker_connections="1024",
        worker_rlimit_nofile="65536",
    )


@pytest.fixture
def test_upstream():
    return Upstream(
        name="test",
        upstream_servers=[
            UpstreamServer(
                address="127.0.0.1",
                port="8181",
                max_fails=0,
                fail_timeout="1s",
                slow_start="5s",
            )
        ],
    )


@pytest.fixture
def server_jwt():
    return JWTAuth(
        key="/etc/nginx/secrets/key.jwk",
        realm="closed site",
        token="$cookie_auth_token",
        redirect_location_name="@login_url-default-cafe-ingress",
    )


@pytest.fixture
def location_jwt():
    return JWTAuth(
        key="/etc/nginx/secrets/location-key.jwk",
        realm="closed site",
        token="$cookie_auth_token",
    )


@pytest.fixture
def test_server(test_upstream, server_jwt, location_jwt):
    return Server(
        name="test.example.com",
        server_tokens="off",
        status_zone="test.example.com",
        jwt_auth=server_jwt,
        ssl=True,
        ssl_certificate="secret.pem",
        ssl_certificate_key="secret.pem",
        ssl_ports=[443],
        ssl_redirect=True,
        locations=[
            Location(
                path="/",
                upstream=test_upstream,
                proxy_connect_timeout="10s",
                proxy_read_timeout="10s",
                client_max_body_size="2m",
                jwt_auth=location_jwt,
            )
        ],
        health_checks={
            "test": HealthCheck(
                upstream_name="test",
                fails=1,
                interval=1,
                passes=1,
                headers={"Test-Header": "test-header-value"},
            )
        },
        jwt_redirect_locations=[
            JWTRedirectLocation(
                name="@login_url-default-cafe-ingress",
                login_url="https://test.example.com/login",
            )
        ],
    )


@pytest.fixture
def ingress_config(test_server, test_upstream):
    return IngressConfig(servers=[test_server], upstreams=[test_upstream], keepalive="16")
