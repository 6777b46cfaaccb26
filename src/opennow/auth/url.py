"""Authorization URL construction.

The query string is assembled by hand: parameters go in a fixed order and
every value is encoded with the strict unreserved set of
:func:`~opennow.auth.codec.percent_encode`.
"""

from __future__ import annotations

import time

from opennow.auth.codec import base64url, percent_encode
from opennow.auth.sha256 import sha256
from opennow.models import LoginConfig, LoginProvider, PkceChallenge


def redirect_uri_for(port: int) -> str:
    """Return the loopback redirect URI registered for *port*."""
    return f"http://localhost:{port}"


class AuthUrlBuilder:
    """Compose the provider authorization URL for one login attempt.

    Args:
        config: Endpoint, client id, scopes, locale, and device label.
    """

    def __init__(self, config: LoginConfig | None = None) -> None:
        self._config = config or LoginConfig()

    def device_id(self) -> str:
        """Stable device identifier: ``base64url(sha256(device_label))``.

        Identical on every call for a given configuration.
        """
        return base64url(sha256(self._config.device_label))

    def generate_nonce(self) -> str:
        """Return a per-call nonce hashed from a nanosecond timestamp."""
        return base64url(sha256(f"{time.time_ns()}:nonce"))

    def build_auth_url(
        self,
        pkce: PkceChallenge,
        callback_port: int,
        provider: LoginProvider,
    ) -> str:
        """Build the authorization URL.

        Args:
            pkce: Challenge pair for this attempt; only the challenge is sent.
            callback_port: Loopback port the listener will bind.
            provider: Identity provider; its ``idp_id`` selects the login page.

        Returns:
            ``<authorize_url>?response_type=code&device_id=...&idp_id=...``
        """
        params = (
            ("response_type", "code"),
            ("device_id", self.device_id()),
            ("scope", self._config.scope),
            ("client_id", self._config.client_id),
            ("redirect_uri", redirect_uri_for(callback_port)),
            ("ui_locales", self._config.ui_locale),
            ("nonce", self.generate_nonce()),
            ("prompt", "select_account"),
            ("code_challenge", pkce.challenge),
            ("code_challenge_method", "S256"),
            ("idp_id", provider.idp_id),
        )
        query = "&".join(f"{key}={percent_encode(value)}" for key, value in params)
        return f"{self._config.authorize_url}?{query}"
