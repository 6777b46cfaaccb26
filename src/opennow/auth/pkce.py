"""PKCE (Proof Key for Code Exchange) generation.

:rfc:`7636` -- Proof Key for Code Exchange for OAuth 2.0 public clients.
Only the S256 challenge method is produced.
"""

from __future__ import annotations

import secrets

from opennow.auth.codec import base64url
from opennow.auth.sha256 import sha256
from opennow.models import PkceChallenge

VERIFIER_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"

MIN_VERIFIER_LENGTH = 43
MAX_VERIFIER_LENGTH = 128


def derive_challenge(verifier: str) -> str:
    """Return the S256 challenge for *verifier*: ``base64url(sha256(verifier))``."""
    return base64url(sha256(verifier.encode("ascii")))


class PkceGenerator:
    """Produce fresh verifier/challenge pairs.

    The verifier is drawn uniformly from the 62-character alphanumeric
    alphabet with :mod:`secrets`.

    Args:
        length: Verifier length. Must stay within the RFC 7636 bounds of
            43..128 characters.

    Raises:
        ValueError: If *length* is outside 43..128.
    """

    def __init__(self, length: int = 64) -> None:
        if not MIN_VERIFIER_LENGTH <= length <= MAX_VERIFIER_LENGTH:
            raise ValueError(
                f"PKCE verifier length must be {MIN_VERIFIER_LENGTH}..{MAX_VERIFIER_LENGTH}, "
                f"got {length}"
            )
        self._length = length

    def make_challenge(self) -> PkceChallenge:
        """Generate a new verifier and its derived challenge."""
        verifier = "".join(secrets.choice(VERIFIER_ALPHABET) for _ in range(self._length))
        return PkceChallenge(verifier=verifier, challenge=derive_challenge(verifier))
