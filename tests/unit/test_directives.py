"""
Unit tests for the directive building blocks.
"""

import pytest

from ingress_config.core.renderer.directives import (
    Edition,
    EndpointBlock,
    access_rules,
    gate,
    jwt_directives,
    listen_args,
    sorted_items,
    upstream_server_args,
)
from ingress_config.models import AllowFrom, JWTAuth, Unset, UpstreamServer


class TestGate:
    """Tests for gate."""

    def test_enabled_builds(self):
        assert gate(True, lambda: "block") == "block"

    def test_disabled_skips_build(self):
        calls = []
        assert gate(False, lambda: calls.append(1)) is None
        assert calls == []


class TestAccessRules:
    """Tests for the three-way access restriction branch."""

    def test_unset_is_unrestricted(self):
        assert access_rules(Unset()) == ()

    def test_empty_value_is_unrestricted(self):
        assert access_rules(AllowFrom(value="")) == ()

    def test_value_restricts(self):
        assert access_rules(AllowFrom(value="1.2.3.4")) == ("allow 1.2.3.4", "deny all")

    def test_cidr(self):
        assert access_rules(AllowFrom(value="10.0.0.0/8"))[0] == "allow 10.0.0.0/8"

    def test_unset_and_empty_agree(self):
        assert access_rules(Unset()) == access_rules(AllowFrom(value="   "))

    def test_rejects_plain_string(self):
        with pytest.raises(TypeError):
            access_rules("1.2.3.4")


class TestEndpointBlock:
    """Tests for EndpointBlock."""

    def test_lines_put_access_before_business_directive(self):
        block = EndpointBlock(
            path="/stub_status",
            access=("allow 1.2.3.4", "deny all"),
            directives=("stub_status",),
        )
        assert block.lines == ("access_log off", "allow 1.2.3.4", "deny all", "stub_status")
        assert block.restricted is True

    def test_unrestricted(self):
        block = EndpointBlock(path="/api", directives=("api write=on",))
        assert block.restricted is False
        assert "allow" not in " ".join(block.lines)

    def test_unrestricted_lines_are_business_directives_only(self):
        block = EndpointBlock(path="/nginx-health", directives=("default_type text/plain",))
        assert block.lines == ("default_type text/plain",)


class TestUpstreamServerArgs:
    """Tests for upstream_server_args."""

    @pytest.fixture
    def server(self):
        return UpstreamServer(
            address="127.0.0.1", port="8181", max_fails=0, fail_timeout="1s", slow_start="5s"
        )

    def test_zero_max_fails_is_written(self, server):
        args = upstream_server_args(server, Edition.OSS)
        assert args == "127.0.0.1:8181 max_fails=0 fail_timeout=1s"

    def test_plus_adds_slow_start(self, server):
        args = upstream_server_args(server, Edition.PLUS)
        assert args == "127.0.0.1:8181 max_fails=0 fail_timeout=1s slow_start=5s"

    def test_plus_without_slow_start(self):
        server = UpstreamServer(address="10.0.0.1", port="80")
        assert "slow_start" not in upstream_server_args(server, Edition.PLUS)


class TestJWTDirectives:
    """Tests for jwt_directives."""

    def test_absent(self):
        assert jwt_directives(None) == ()

    def test_full(self):
        auth = JWTAuth(
            key="/etc/nginx/secrets/key.jwk",
            realm="closed site",
            token="$cookie_auth_token",
            redirect_location_name="@login",
        )
        assert jwt_directives(auth) == (
            "auth_jwt_key_file /etc/nginx/secrets/key.jwk",
            'auth_jwt "closed site" token=$cookie_auth_token',
            "error_page 401 @login",
        )

    def test_without_token_or_redirect(self):
        auth = JWTAuth(key="/k.jwk", realm="api")
        assert jwt_directives(auth) == ("auth_jwt_key_file /k.jwk", 'auth_jwt "api"')


class TestHelpers:
    """Tests for small ordering helpers."""

    def test_sorted_items(self):
        assert sorted_items({"b": 2, "a": 1}) == (("a", 1), ("b", 2))

    def test_listen_args(self):
        assert listen_args([443, 8443], " ssl") == ("443 ssl", "8443 ssl")
        assert listen_args([]) == ()
