"""OAuth2 Authorization Code + PKCE login core.

Generates the PKCE pair, builds the authorization URL, picks a loopback
callback port, and receives the browser redirect on a one-shot local HTTP
listener. Token exchange is not part of this package.

Exports:
    :class:`LoginService` -- facade used by the command line.
    :class:`LoopbackListener`, :class:`ListenerState`, :func:`extract_code`.
    :class:`PkceGenerator`, :class:`AuthUrlBuilder`.
    :func:`sha256`, :func:`base64url`, :func:`percent_encode`,
    :func:`percent_decode`.
    :func:`fetch_providers`, :func:`select_provider`.
"""

from opennow.auth.codec import base64url, percent_decode, percent_encode
from opennow.auth.login import LoginService
from opennow.auth.loopback import (
    CALLBACK_RESPONSE,
    ListenerState,
    LoopbackListener,
    extract_code,
    extract_query_param,
    parse_request_target,
)
from opennow.auth.pkce import PkceGenerator, derive_challenge
from opennow.auth.providers import fetch_providers, select_provider
from opennow.auth.sha256 import sha256, sha256_hex
from opennow.auth.url import AuthUrlBuilder, redirect_uri_for

__all__ = [
    "AuthUrlBuilder",
    "CALLBACK_RESPONSE",
    "ListenerState",
    "LoginService",
    "LoopbackListener",
    "PkceGenerator",
    "base64url",
    "derive_challenge",
    "extract_code",
    "extract_query_param",
    "fetch_providers",
    "parse_request_target",
    "percent_decode",
    "percent_encode",
    "redirect_uri_for",
    "select_provider",
    "sha256",
    "sha256_hex",
]
