"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~opennow.exceptions.OpennowError` subclass.
Shell wrappers can inspect the exit code to tell a cancelled login from a
busy callback port without parsing stderr.

Example::

    $ opennow login --timeout 60
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- no authorization code arrived
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_AUTH_FAILURE = 3
"""The login attempt finished without an authorization code."""

EXIT_CONNECTION_ERROR = 6
"""No loopback callback port could be bound."""
