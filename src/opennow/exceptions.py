"""Exception hierarchy for the opennow command line.

The login core in :mod:`opennow.auth` never raises across its public
surface; it reports failure as ``None``. These exceptions exist for the
command-line caller, which turns a ``None`` into a meaningful exit status.
The top-level handler in :func:`opennow.app.main` catches
``OpennowError`` and exits with its ``exit_code``.

Subclass hierarchy::

    OpennowError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- AuthError           (exit 3)
    +-- ConnectionError_    (exit 6)
    +-- ConfigError         (exit 1)
"""

from opennow.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
)


class OpennowError(Exception):
    """Base exception for all opennow errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(OpennowError):
    """Raised for invalid CLI arguments such as an unknown provider code."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(OpennowError):
    """Raised when a login attempt ends without an authorization code."""

    exit_code = EXIT_AUTH_FAILURE


class ConnectionError_(OpennowError):
    """Raised when none of the loopback callback ports can be bound.

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ConfigError(OpennowError):
    """Raised for configuration problems (invalid JSON, failed validation, bad env values)."""

    exit_code = EXIT_GENERIC_FAILURE
