"""Tests for the shared Pydantic models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from opennow.models import (
    DEFAULT_REDIRECT_PORTS,
    PRIMARY_PARTNER,
    AuthTokens,
    GlobalConfig,
    LoginConfig,
    LoginProvider,
    PkceChallenge,
)


class TestLoginProvider:
    def test_primary_partner(self) -> None:
        provider = LoginProvider.primary_partner()
        assert provider is PRIMARY_PARTNER
        assert provider.code == "NVIDIA"
        assert provider.idp_id == "PDiAhv2kJTFeQ7WOPqiQ2tRZ7lGhR2X11dXvM4TZSxg"
        assert not provider.is_alliance_partner

    def test_alliance_partner(self) -> None:
        assert LoginProvider(idp_id="x", code="BPC").is_alliance_partner

    @pytest.mark.parametrize("code", ["", "   "])
    def test_empty_code_rejected(self, code: str) -> None:
        with pytest.raises(ValidationError):
            LoginProvider(idp_id="x", code=code)

    def test_streaming_url_gets_trailing_slash(self) -> None:
        provider = LoginProvider(idp_id="x", code="BPC", streaming_service_url="https://a.test")
        assert provider.streaming_service_url == "https://a.test/"

    def test_frozen(self) -> None:
        with pytest.raises(ValidationError):
            PRIMARY_PARTNER.code = "OTHER"  # type: ignore[misc]


class TestLoginConfig:
    def test_defaults(self) -> None:
        config = LoginConfig()
        assert config.redirect_ports == DEFAULT_REDIRECT_PORTS == (2259, 6460, 7119, 8870, 9096)
        assert config.scope == "openid consent email tk_client age"
        assert config.client_id == "ZU7sPN-miLujMD95LfOQ453IB0AtjM8sMyvgJ9wCXEQ"
        assert config.bind_host == "127.0.0.1"
        assert config.recv_buffer_size == 4096

    @pytest.mark.parametrize("ports", [(), (0,), (65536,), (2259, -1)])
    def test_invalid_ports(self, ports: tuple[int, ...]) -> None:
        with pytest.raises(ValidationError):
            LoginConfig(redirect_ports=ports)

    def test_buffer_size_minimum(self) -> None:
        with pytest.raises(ValidationError):
            LoginConfig(recv_buffer_size=1)

    def test_ports_from_json_list(self) -> None:
        config = GlobalConfig.model_validate({"login": {"redirect_ports": [8870, 9096]}})
        assert config.login.redirect_ports == (8870, 9096)


def test_pkce_challenge_method_default() -> None:
    assert PkceChallenge(verifier="v", challenge="c").method == "S256"


def test_auth_tokens_optional_fields() -> None:
    tokens = AuthTokens(access_token="at")
    assert tokens.refresh_token is None
    assert tokens.expires_at == 0
