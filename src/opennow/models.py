"""Canonical Pydantic models shared across all opennow modules.

This is the single source of truth for data shapes in the project. The models
fall into two groups:

**Login models** -- created per login attempt and never persisted:
    :class:`LoginProvider`, :class:`PkceChallenge`, and :class:`AuthTokens`.

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`LoginConfig`, :class:`OutputConfig`, and :class:`GlobalConfig`.

:class:`LoginConfig` replaces what would otherwise be module-level constants
(client id, scopes, candidate ports). It is frozen and handed explicitly to
the URL builder and the loopback listener, so tests can supply alternate
ports without touching shared state.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

PRIMARY_PARTNER_CODE = "NVIDIA"
"""Login provider code of the primary partner; every other code is an alliance partner."""

DEFAULT_REDIRECT_PORTS: tuple[int, ...] = (2259, 6460, 7119, 8870, 9096)
"""Loopback callback ports registered with the identity provider, in priority order."""


# --- Login models ---


class LoginProvider(BaseModel):
    """Identity-provider descriptor carried through a login attempt.

    Only ``idp_id`` flows into the authorization URL; the rest is carried for
    the caller. ``priority`` orders providers returned by discovery and is
    not used otherwise.

    Example::

        provider = LoginProvider.primary_partner()
        assert not provider.is_alliance_partner
    """

    model_config = ConfigDict(frozen=True)

    idp_id: str
    code: str
    display_name: str = ""
    provider: str = ""
    streaming_service_url: str = ""
    priority: int = 0

    @field_validator("code")
    @classmethod
    def _code_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("login provider code must not be empty")
        return value

    @field_validator("streaming_service_url")
    @classmethod
    def _trailing_slash(cls, value: str) -> str:
        if value and not value.endswith("/"):
            return value + "/"
        return value

    @property
    def is_alliance_partner(self) -> bool:
        """``True`` when this provider is not the primary partner."""
        return self.code != PRIMARY_PARTNER_CODE

    @classmethod
    def primary_partner(cls) -> LoginProvider:
        """Return the default primary-partner provider record."""
        return PRIMARY_PARTNER


PRIMARY_PARTNER = LoginProvider(
    idp_id="PDiAhv2kJTFeQ7WOPqiQ2tRZ7lGhR2X11dXvM4TZSxg",
    code=PRIMARY_PARTNER_CODE,
    display_name="NVIDIA",
    provider="NVIDIA",
    streaming_service_url="https://prod.cloudmatchbeta.nvidiagrid.net/",
    priority=0,
)


class PkceChallenge(BaseModel):
    """PKCE code verifier and its derived S256 challenge.

    The pair is generated together by
    :class:`~opennow.auth.pkce.PkceGenerator`; ``challenge`` is always
    ``base64url(sha256(verifier))`` without padding.
    """

    model_config = ConfigDict(frozen=True)

    verifier: str
    challenge: str
    method: str = "S256"


class AuthTokens(BaseModel):
    """Token set produced by the code exchange.

    The exchange itself happens outside this package; the model only fixes
    the shape the exchange step is expected to fill.
    """

    access_token: str
    refresh_token: Optional[str] = None
    id_token: Optional[str] = None
    expires_at: int = Field(default=0, description="Absolute expiry, epoch milliseconds")


# --- Configuration models ---


class LoginConfig(BaseModel):
    """Immutable settings for one login helper instance.

    Defaults match the production identity provider. The config file's
    ``login`` section and the ``OPENNOW_*`` environment variables override
    them (see :func:`~opennow.config.resolve_login_config`).
    """

    model_config = ConfigDict(frozen=True)

    authorize_url: str = Field(
        default="https://login.nvidia.com/authorize",
        description="Authorization endpoint opened in the browser",
    )
    client_id: str = "ZU7sPN-miLujMD95LfOQ453IB0AtjM8sMyvgJ9wCXEQ"
    scopes: tuple[str, ...] = ("openid", "consent", "email", "tk_client", "age")
    redirect_ports: tuple[int, ...] = Field(
        default=DEFAULT_REDIRECT_PORTS,
        description="Candidate loopback ports, tried in order",
    )
    bind_host: str = Field(default="127.0.0.1", description="Loopback bind address")
    ui_locale: str = "en_US"
    device_label: str = Field(
        default="opennow-device",
        description="Hashed into the stable device_id query parameter",
    )
    recv_buffer_size: int = Field(
        default=4096, description="Callback request buffer; one byte is reserved"
    )
    read_timeout: Optional[float] = Field(
        default=30.0, description="Seconds to wait for the request bytes after accept"
    )
    accept_poll_interval: float = Field(
        default=0.25, description="Accept polling slice used to observe timeout and cancel"
    )
    service_urls_endpoint: str = "https://pcs.geforcenow.com/v1/serviceUrls"

    @field_validator("redirect_ports")
    @classmethod
    def _valid_ports(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        if not value:
            raise ValueError("at least one redirect port is required")
        for port in value:
            if not 0 < port < 65536:
                raise ValueError(f"invalid port: {port}")
        return value

    @field_validator("recv_buffer_size")
    @classmethod
    def _buffer_size(cls, value: int) -> int:
        if value < 2:
            raise ValueError("recv_buffer_size must be at least 2")
        return value

    @property
    def scope(self) -> str:
        """Space-separated scope string sent in the authorization request."""
        return " ".join(self.scopes)


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/opennow/config.json``.

    Loaded and saved by :func:`~opennow.config.load_global_config` and
    :func:`~opennow.config.save_global_config`.
    """

    login: LoginConfig = Field(default_factory=LoginConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    default_provider: Optional[str] = Field(
        default=None, description="Provider code used by 'opennow login' when none is given"
    )
