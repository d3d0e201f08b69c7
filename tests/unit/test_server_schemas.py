"""
Unit tests for the pydantic schemas and parse_schema.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from ssh_manage.enums import ReachabilityStatus
from ssh_manage.exceptions import ValidationError
from ssh_manage.schemas import (
    AccountCreate,
    AuthKeyUpdate,
    ProbeResult,
    ServerConfigRead,
    ServerProfileCreate,
    parse_schema,
)


def profile_data(**overrides):
    data = {
        "name": "web1",
        "host": "10.0.0.5",
        "username": "root",
        "port": 22,
        "ssh_key": "/keys/a",
        "auth_key": "K",
    }
    data.update(overrides)
    return data


class TestServerProfileCreate:
    """Test ServerProfileCreate validation."""

    def test_valid(self):
        profile = ServerProfileCreate(**profile_data())

        assert profile.name == "web1"
        assert profile.port == 22

    def test_strips_whitespace(self):
        profile = ServerProfileCreate(**profile_data(name="  web1 ", host=" 10.0.0.5\t"))

        assert profile.name == "web1"
        assert profile.host == "10.0.0.5"

    @pytest.mark.parametrize("auth_key", ["-abc123", "--opaque=value", " spaced key "])
    def test_auth_key_kept_verbatim(self, auth_key):
        assert ServerProfileCreate(**profile_data(auth_key=auth_key)).auth_key == auth_key

    @pytest.mark.parametrize("host", ["example.com", "192.168.1.10", "::1", "[2001:db8::1]"])
    def test_valid_hosts(self, host):
        assert ServerProfileCreate(**profile_data(host=host)).host == host

    @pytest.mark.parametrize(
        "field,value",
        [
            ("name", "-oProxyCommand=x"),
            ("host", "-oProxyCommand=x"),
            ("username", "-l"),
            ("ssh_key", "-i"),
            ("host", "a b"),
            ("host", "h;reboot"),
            ("auth_key", "line\nbreak"),
        ],
    )
    def test_rejects_option_like_and_unsafe_values(self, field, value):
        with pytest.raises(PydanticValidationError):
            ServerProfileCreate(**profile_data(**{field: value}))

    @pytest.mark.parametrize("port", [0, -1, 65536])
    def test_port_range(self, port):
        with pytest.raises(PydanticValidationError):
            ServerProfileCreate(**profile_data(port=port))

    def test_extra_fields_forbidden(self):
        with pytest.raises(PydanticValidationError):
            ServerProfileCreate(**profile_data(token="abc"))


class TestParseSchema:
    """Test conversion of pydantic errors."""

    def test_returns_model(self):
        assert parse_schema(AuthKeyUpdate, {"auth_key": "K2"}).auth_key == "K2"

    def test_names_offending_field(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_schema(ServerProfileCreate, profile_data(port=70000))

        assert exc_info.value.context["field"] == "port"
        assert exc_info.value.to_payload()["error"].startswith("Validation failed for port")

    def test_masks_secret_values(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_schema(AuthKeyUpdate, {"auth_key": "secret\x00value"})

        assert exc_info.value.context["value"] == "***"
        assert "secret" not in exc_info.value.to_payload()["error"]

    @pytest.mark.parametrize("auth_key", ["-abc123", " spaced key "])
    def test_auth_key_update_kept_verbatim(self, auth_key):
        assert parse_schema(AuthKeyUpdate, {"auth_key": auth_key}).auth_key == auth_key

    def test_missing_field(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_schema(AccountCreate, {})

        assert exc_info.value.context["field"] == "external_id"
        assert exc_info.value.context["value"] == "***"


class TestResponseSchemas:
    """Test response serialization."""

    def test_server_config_uses_server_key(self):
        config = ServerConfigRead(
            name="web1", username="root", host="h", port=22, ssh_key="/k", auth_key="K"
        )

        dumped = config.model_dump(by_alias=True)
        assert dumped["server"] == "h"
        assert "host" not in dumped

    def test_probe_result_payloads(self):
        assert ProbeResult(status=ReachabilityStatus.REACHABLE).to_payload() == {
            "status": "success"
        }
        assert ProbeResult(
            status=ReachabilityStatus.UNREACHABLE, details="refused"
        ).to_payload() == {"error": "Connection failed", "details": "refused"}
