"""opennow -- OAuth2 Authorization Code + PKCE login core with a small CLI.

The :mod:`opennow.auth` package does the real work: it generates a PKCE
verifier/challenge pair with its own SHA-256, builds the provider
authorization URL, picks a free loopback callback port, and receives the
browser redirect on a one-shot local HTTP listener.

Typical use::

    from opennow.auth import LoginService
    from opennow.models import LoginProvider

    service = LoginService()
    pkce = service.make_pkce_challenge()
    port = service.pick_callback_port()
    url = service.build_auth_url(pkce, port, LoginProvider.primary_partner())
    # open url in a browser, then:
    code = service.wait_for_callback_code(port, timeout=300)

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting and logging setup with Rich.
"""

__version__ = "0.1.0"
