"""Login service facade.

:class:`LoginService` bundles the four pieces a caller needs for one
Authorization-Code-with-PKCE attempt, all built from the same
:class:`~opennow.models.LoginConfig`:

1. :meth:`~LoginService.make_pkce_challenge` -- fresh verifier/challenge.
2. :meth:`~LoginService.pick_callback_port` -- first free loopback port.
3. :meth:`~LoginService.build_auth_url` -- the URL to open in a browser.
4. :meth:`~LoginService.wait_for_callback_code` -- block for the redirect.

Opening the browser and exchanging the code for tokens are the caller's
business.
"""

from __future__ import annotations

from typing import Optional

from opennow.auth.loopback import LoopbackListener, extract_code
from opennow.auth.pkce import PkceGenerator
from opennow.auth.url import AuthUrlBuilder
from opennow.models import LoginConfig, LoginProvider, PkceChallenge

PREVIEW_URL_CHARS = 72


class LoginService:
    """Entry point for the login core.

    Args:
        config: Shared configuration. Defaults to :class:`LoginConfig` with
            production values.
    """

    def __init__(self, config: LoginConfig | None = None) -> None:
        self.config = config or LoginConfig()
        self._pkce = PkceGenerator()
        self._urls = AuthUrlBuilder(self.config)
        self._listener = LoopbackListener(self.config)

    @property
    def listener(self) -> LoopbackListener:
        return self._listener

    def make_pkce_challenge(self) -> PkceChallenge:
        return self._pkce.make_challenge()

    def build_auth_url(
        self, pkce: PkceChallenge, callback_port: int, provider: LoginProvider
    ) -> str:
        return self._urls.build_auth_url(pkce, callback_port, provider)

    def pick_callback_port(self) -> Optional[int]:
        return self._listener.pick_callback_port()

    def extract_code_from_callback_target(self, callback_target: str) -> Optional[str]:
        return extract_code(callback_target)

    def wait_for_callback_code(
        self, callback_port: int, timeout: Optional[float] = None
    ) -> Optional[str]:
        return self._listener.wait_for_callback_code(callback_port, timeout=timeout)

    def cancel(self) -> None:
        """Abort a pending :meth:`wait_for_callback_code` from another thread."""
        self._listener.cancel()

    def bootstrap_preview(self, provider: LoginProvider | None = None) -> str:
        """Run the non-blocking half of a login and describe it in one line.

        Generates a challenge, picks a port (falling back to the first
        configured port when none is free), and builds the URL. Nothing is
        listened on and nothing is opened.

        Returns:
            ``Login base initialized (provider=..., callback_port=...,
            auth_url_prefix=...)``
        """
        provider = provider or LoginProvider.primary_partner()
        pkce = self.make_pkce_challenge()
        port = self.pick_callback_port()
        if port is None:
            port = self.config.redirect_ports[0]
        url = self.build_auth_url(pkce, port, provider)
        return (
            f"Login base initialized (provider={provider.code}, callback_port={port}, "
            f"auth_url_prefix={url[:PREVIEW_URL_CHARS]}...)"
        )
