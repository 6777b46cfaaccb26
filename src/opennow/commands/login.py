"""Login commands -- drive the login core from the terminal.

Provides ``opennow preview``, ``opennow login`` and ``opennow providers``.

Typical workflow::

    opennow providers                 # list identity providers
    opennow login --timeout 300       # browser login, prints code + verifier
    opennow --json login | exchange-tokens

``login`` prints the authorization code together with the PKCE verifier and
redirect URI on stdout. Those three values are what a token exchange needs;
the exchange itself is not performed here.
"""

from __future__ import annotations

import threading
import webbrowser
from typing import List, Optional

import typer

from opennow.auth import LoginService, fetch_providers, select_provider
from opennow.auth.url import redirect_uri_for
from opennow.exceptions import (
    AuthError,
    ConnectionError_,
    InvalidUsageError,
    OpennowError,
)
from opennow.models import LoginConfig, LoginProvider
from opennow.output import debug, error, format_response, info, print_data, print_table, success

BANNER = "OpenNOW bootstrap is running."


def _fail(exc: OpennowError) -> None:
    """Report *exc* on stderr and exit with its code."""
    error(str(exc))
    raise typer.Exit(code=exc.exit_code)


def _resolve(ports: Optional[List[int]]) -> tuple[LoginConfig, Optional[str]]:
    """Resolve the login config and the configured default provider code."""
    from opennow.config import load_global_config, resolve_login_config

    global_cfg = load_global_config()
    return resolve_login_config(cli_ports=ports, global_config=global_cfg), global_cfg.default_provider


def _choose_provider(config: LoginConfig, code: Optional[str]) -> LoginProvider:
    """Return the primary partner, or look *code* up through provider discovery."""
    primary = LoginProvider.primary_partner()
    if code is None or code.strip().upper() == primary.code:
        return primary

    providers = fetch_providers(config)
    provider = select_provider(providers, code)
    if provider is None:
        known = ", ".join(p.code for p in providers)
        raise InvalidUsageError(f"Unknown login provider '{code}' (available: {known})")
    return provider


def preview_command() -> None:
    """Print the banner and a one-line login bootstrap preview.

    Generates a PKCE pair, picks a callback port, and builds the
    authorization URL without listening or opening a browser.

    Example::

        opennow preview
    """
    try:
        config, _ = _resolve(None)
    except OpennowError as exc:
        _fail(exc)
        return

    service = LoginService(config)
    print_data(BANNER)
    print_data(service.bootstrap_preview())


def login_command(
    provider_code: Optional[str] = typer.Option(
        None, "--provider", help="Login provider code (default: primary partner)."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", "-t", min=0.0, help="Seconds to wait for the browser redirect."
    ),
    ports: Optional[List[int]] = typer.Option(
        None, "--port", help="Candidate callback port (repeatable)."
    ),
    no_browser: bool = typer.Option(
        False, "--no-browser", help="Print the URL instead of opening a browser."
    ),
) -> None:
    """Run one interactive login and print the authorization code.

    Picks a free loopback port, opens the authorization URL in the default
    browser, and waits for the redirect. Exits with code 6 when no callback
    port is free and code 3 when the attempt ends without a code.

    Example::

        opennow login --timeout 300
        opennow --json login --provider BPC
    """
    try:
        config, default_provider = _resolve(ports)
        provider = _choose_provider(config, provider_code or default_provider)

        service = LoginService(config)
        port = service.pick_callback_port()
        if port is None:
            raise ConnectionError_(
                "No callback port available (tried "
                + ", ".join(str(p) for p in config.redirect_ports)
                + ")"
            )

        pkce = service.make_pkce_challenge()
        url = service.build_auth_url(pkce, port, provider)
        debug(f"Callback port: {port}")

        if no_browser:
            info("Open this URL in your browser to sign in:")
            info(url)
        else:
            info(f"Opening {provider.display_name or provider.code} login in your browser...")
            debug(url)

            def open_browser() -> None:
                service.listener.listening.wait(5)
                webbrowser.open(url)

            threading.Thread(target=open_browser, daemon=True).start()

        code = service.wait_for_callback_code(port, timeout=timeout)
        if code is None:
            raise AuthError("Login finished without an authorization code")
    except OpennowError as exc:
        _fail(exc)
        return

    success("Authorization code received.")
    format_response(
        {
            "provider": provider.code,
            "code": code,
            "code_verifier": pkce.verifier,
            "redirect_uri": redirect_uri_for(port),
        }
    )


def providers_command() -> None:
    """List the identity providers offered by the service.

    Falls back to the primary partner when the provider list cannot be
    fetched.

    Example::

        opennow providers
        opennow --json providers
    """
    try:
        config, _ = _resolve(None)
    except OpennowError as exc:
        _fail(exc)
        return

    providers = fetch_providers(config)
    rows = [
        [
            p.code,
            p.display_name,
            str(p.priority),
            "yes" if p.is_alliance_partner else "no",
            p.streaming_service_url,
        ]
        for p in providers
    ]
    print_table(
        ["Code", "Name", "Priority", "Alliance", "Streaming URL"],
        rows,
        title="Login providers",
    )
