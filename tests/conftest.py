"""Shared test fixtures for opennow.

Provides isolated config directories, output-state reset, free loopback
ports, and a CLI runner. These fixtures are discovered automatically by
pytest.
"""

from __future__ import annotations

import logging
import socket
from contextlib import ExitStack
from pathlib import Path

import pytest

from opennow.models import LoginConfig
from opennow.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches sys.stdout/sys.stderr at creation time. When
    CliRunner swaps those streams out, the cached references go stale, so a
    fresh manager is created on next use.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _restore_opennow_logger() -> None:
    """Undo handlers installed by configure_logging during a test.

    CliRunner closes its capture streams after each invoke; a handler left
    pointing at one would fail on the next log record.
    """
    logger = logging.getLogger("opennow")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME and XDG_DATA_HOME at subdirectories of tmp_path,
    forces the XDG code path, clears OPENNOW_* variables, and changes into
    tmp_path.

    Returns:
        The tmp_path root directory.
    """
    monkeypatch.setattr("opennow.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in ["OPENNOW_CALLBACK_PORTS", "OPENNOW_AUTHORIZE_URL"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Loopback ports
# ---------------------------------------------------------------------------


def _allocate_ports(count: int) -> list[int]:
    """Ask the kernel for *count* distinct free ports, then release them all."""
    with ExitStack() as stack:
        ports = []
        for _ in range(count):
            s = stack.enter_context(socket.socket(socket.AF_INET, socket.SOCK_STREAM))
            s.bind(("127.0.0.1", 0))
            ports.append(s.getsockname()[1])
    return ports


@pytest.fixture
def free_ports() -> list[int]:
    """Three distinct loopback ports that were free when the fixture ran."""
    return _allocate_ports(3)


@pytest.fixture
def login_config(free_ports: list[int]) -> LoginConfig:
    """LoginConfig using free ports and a short accept poll interval."""
    return LoginConfig(
        redirect_ports=tuple(free_ports),
        accept_poll_interval=0.05,
        read_timeout=5.0,
    )


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet PLAIN-format OutputManager for the duration of a test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
