"""One-shot loopback HTTP listener for the OAuth2 redirect.

The identity provider redirects the browser to ``http://localhost:<port>/?code=...``.
:class:`LoopbackListener` binds one of the registered candidate ports on the
loopback interface, accepts exactly one connection, reads the request line,
answers with a fixed HTML page, and hands back the ``code`` query parameter.

Each attempt walks a small state machine, exposed as :attr:`LoopbackListener.state`::

    IDLE -> PORT_BOUND -> ACCEPTING -> REQUEST_RECEIVED -> RESPONDED -> CLOSED

Nothing here raises across the public surface. A busy port, a failed bind,
a malformed request, a missing code, a timeout, or a cancel all come back as
``None``. Every socket is opened in a ``with`` block and is closed on every
return path.

Uses only the stdlib ``socket`` module. The responder does a single read
and sends a fixed reply.
"""

from __future__ import annotations

import enum
import logging
import socket
import threading
import time
from typing import Optional

from opennow.auth.codec import percent_decode
from opennow.models import LoginConfig

logger = logging.getLogger(__name__)

CALLBACK_RESPONSE = (
    b"HTTP/1.1 200 OK\r\n"
    b"Content-Type: text/html\r\n"
    b"\r\n"
    b"<html><body><h1>Login Successful</h1>"
    b"<p>You can return to OpenNOW.</p></body></html>"
)
"""Sent to the browser after every accepted connection, whatever the request held."""


class ListenerState(str, enum.Enum):
    """Lifecycle of a single :meth:`LoopbackListener.wait_for_callback_code` call."""

    IDLE = "idle"
    PORT_BOUND = "port_bound"
    ACCEPTING = "accepting"
    REQUEST_RECEIVED = "request_received"
    RESPONDED = "responded"
    CLOSED = "closed"


# --- Pure helpers ---


def extract_query_param(target: str, name: str) -> Optional[str]:
    """Return the first non-empty value of *name* in *target*'s query string.

    The key is compared literally; the value is percent-decoded leniently.

    Args:
        target: Request target, e.g. ``/?code=abc&state=xyz``.
        name: Parameter name to look for.

    Returns:
        The decoded value, or ``None`` when there is no query string or no
        segment ``name=<value>`` with a non-empty value.
    """
    _, sep, query = target.partition("?")
    if not sep:
        return None
    for segment in query.split("&"):
        key, eq, value = segment.partition("=")
        if eq and key == name and value:
            return percent_decode(value)
    return None


def extract_code(target: str) -> Optional[str]:
    """Return the authorization ``code`` carried by a callback request target.

    The first ``code=`` segment wins. The ``state`` parameter is not
    checked against anything.

    Example::

        >>> extract_code("/?code=abc123%2Ffoo%2Bbar&state=foo")
        'abc123/foo+bar'
    """
    return extract_query_param(target, "code")


def parse_request_target(raw: bytes) -> Optional[str]:
    """Extract the target from the request line ``METHOD target HTTP/version``.

    The line is read as UTF-8 so raw non-ASCII bytes in the target survive;
    invalid sequences become U+FFFD.

    Args:
        raw: The bytes received from the client.

    Returns:
        The target (path and query), or ``None`` when the first line does
        not contain two spaces.
    """
    if not raw:
        return None
    text = raw.decode("utf-8", errors="replace")
    first_line = text.split("\r\n", 1)[0]
    first_space = first_line.find(" ")
    if first_space < 0:
        return None
    second_space = first_line.find(" ", first_space + 1)
    if second_space < 0:
        return None
    return first_line[first_space + 1 : second_space]


# --- Listener ---


class LoopbackListener:
    """Port probing plus a single-connection callback receiver.

    A listener can be reused for consecutive attempts; each call to
    :meth:`wait_for_callback_code` starts again from ``IDLE`` and releases
    every socket before it returns. :attr:`listening` is set while the
    listening socket is bound and accepting, so a second thread can wait
    for it before opening the browser.

    Args:
        config: Supplies the candidate ports, the bind host, the receive
            buffer size, and the polling/read timeouts.
    """

    def __init__(self, config: LoginConfig | None = None) -> None:
        self._config = config or LoginConfig()
        self._state = ListenerState.IDLE
        self._cancelled = threading.Event()
        self.listening = threading.Event()

    @property
    def state(self) -> ListenerState:
        """Current (or final) state of the most recent attempt."""
        return self._state

    def cancel(self) -> None:
        """Abort a pending :meth:`wait_for_callback_code` from another thread.

        The wait notices the cancel within one ``accept_poll_interval`` and
        returns ``None``. Calling this while no wait is running makes the
        next wait return immediately.
        """
        self._cancelled.set()

    def pick_callback_port(self) -> Optional[int]:
        """Return the first candidate port that can be bound on the loopback address.

        Each port is probed with a fresh socket that is closed straight
        away. The probe sets ``SO_REUSEADDR`` like the real bind, so a port
        left in TIME_WAIT by an earlier attempt still counts as free.

        The check is not atomic: another process can take the port before
        :meth:`wait_for_callback_code` binds it, in which case that call
        returns ``None``.

        Returns:
            A port from ``config.redirect_ports``, or ``None`` if every
            candidate is unavailable.
        """
        host = self._config.bind_host
        for port in self._config.redirect_ports:
            try:
                with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as probe:
                    probe.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
                    probe.bind((host, port))
            except (OSError, OverflowError) as exc:
                logger.debug("Callback port %d unavailable: %s", port, exc)
                continue
            logger.debug("Selected callback port %d", port)
            return port

        logger.warning(
            "None of the callback ports %s could be bound on %s",
            list(self._config.redirect_ports),
            host,
        )
        return None

    def wait_for_callback_code(
        self, port: int, timeout: Optional[float] = None
    ) -> Optional[str]:
        """Block until one redirect arrives on *port* and return its ``code``.

        The browser always receives :data:`CALLBACK_RESPONSE` once a
        connection has been accepted, even when the request carried no
        usable code.

        Args:
            port: Port to bind on the loopback address, normally the one
                returned by :meth:`pick_callback_port`.
            timeout: Seconds to wait for a connection. ``None`` waits
                until a client connects or :meth:`cancel` is called.

        Returns:
            The decoded authorization code, or ``None`` on bind/listen
            failure, timeout, cancel, accept failure, or a request without
            a code.
        """
        self._state = ListenerState.IDLE
        deadline = None if timeout is None else time.monotonic() + timeout
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server:
                try:
                    server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
                    server.bind((self._config.bind_host, port))
                    self._state = ListenerState.PORT_BOUND
                    server.listen(1)
                except (OSError, OverflowError) as exc:
                    logger.warning("Cannot listen on %s:%d: %s", self._config.bind_host, port, exc)
                    return None

                self._state = ListenerState.ACCEPTING
                self.listening.set()
                logger.debug("Waiting for OAuth callback on %s:%d", self._config.bind_host, port)

                client = self._accept_one(server, deadline)
                if client is None:
                    return None
                with client:
                    return self._serve(client)
        except OSError as exc:
            logger.warning("Callback listener failed: %s", exc)
            return None
        finally:
            self.listening.clear()
            self._cancelled.clear()
            self._state = ListenerState.CLOSED

    def _accept_one(
        self, server: socket.socket, deadline: Optional[float]
    ) -> Optional[socket.socket]:
        """Poll ``accept`` in short slices so timeout and cancel are observed."""
        server.settimeout(self._config.accept_poll_interval)
        while True:
            if self._cancelled.is_set():
                logger.info("OAuth callback wait cancelled")
                return None
            try:
                client, addr = server.accept()
            except socket.timeout:
                if deadline is not None and time.monotonic() >= deadline:
                    logger.info("Timed out waiting for OAuth callback")
                    return None
                continue
            except OSError as exc:
                logger.warning("Accepting the OAuth callback failed: %s", exc)
                return None
            logger.debug("OAuth callback connection from %s:%d", *addr[:2])
            return client

    def _serve(self, client: socket.socket) -> Optional[str]:
        """Read the request once, reply, and return the extracted code."""
        client.settimeout(self._config.read_timeout)
        try:
            raw = client.recv(self._config.recv_buffer_size - 1)
        except OSError as exc:
            logger.warning("Reading the OAuth callback request failed: %s", exc)
            raw = b""
        self._state = ListenerState.REQUEST_RECEIVED

        code: Optional[str] = None
        target = parse_request_target(raw)
        if target is None:
            logger.warning("Malformed OAuth callback request line")
        else:
            code = extract_code(target)
            if code is None:
                error = extract_query_param(target, "error")
                if error:
                    logger.warning("Identity provider returned error: %s", error)
                else:
                    logger.warning("OAuth callback carried no authorization code")

        try:
            client.sendall(CALLBACK_RESPONSE)
        except OSError as exc:
            logger.debug("Could not send callback response: %s", exc)
        self._state = ListenerState.RESPONDED
        return code
