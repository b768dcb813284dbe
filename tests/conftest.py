"""Shared test fixtures for cliauth.

Provides reusable fixtures for isolated config environments, auth systems
with stub handlers, output state, and running CLI commands. These fixtures
are automatically discovered by pytest and available to all test modules
without explicit imports.
"""

from __future__ import annotations

import logging
from pathlib import Path

import httpx
import pytest

from cliauth.auth.base import AuthContext, AuthHandler, require_token
from cliauth.auth.manager import AuthSystem
from cliauth.models import TokenPayload
from cliauth.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()
    logger = logging.getLogger("cliauth")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path
    so that tests never touch real user settings or secrets. Clears
    CLIAUTH_PROFILE and changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.delenv("CLIAUTH_PROFILE", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def settings_file(isolated_config: Path) -> Path:
    return isolated_config / "config" / "cliauth" / "settings.json"


@pytest.fixture
def secrets_file(isolated_config: Path) -> Path:
    return isolated_config / "data" / "cliauth" / "secrets.json"


# ---------------------------------------------------------------------------
# Stub handlers
# ---------------------------------------------------------------------------


class StubHandler(AuthHandler):
    """Non-interactive handler that hands out a fixed token.

    Records every call so tests can assert on what the core passed in.
    """

    def __init__(self, token: str = "T", keys: list[str] | None = None) -> None:
        self.token = token
        self.keys = keys or []
        self.flow_calls: list[AuthContext] = []
        self.request_calls: list[httpx.Request] = []

    def execute_flow(self, log, context: AuthContext) -> TokenPayload:
        self.flow_calls.append(context)
        server = context.auth_server
        return TokenPayload(
            access_token=self.token,
            client_id=server.client_id if server else "",
            issuer=server.issuer if server else "",
        )

    def profile_keys(self) -> list[str]:
        return list(self.keys)

    def on_request(self, log, request: httpx.Request, context: AuthContext) -> None:
        self.request_calls.append(request)
        payload = require_token(context)
        request.headers["Authorization"] = f"Bearer {payload.access_token}"


@pytest.fixture
def make_handler():
    """Factory for fresh :class:`StubHandler` instances."""
    return StubHandler


@pytest.fixture
def stub_handler() -> StubHandler:
    return StubHandler()


@pytest.fixture
def auth_system(isolated_config: Path, stub_handler: StubHandler) -> AuthSystem:
    """An AuthSystem on the isolated stores with ``oidc`` served by a stub."""
    system = AuthSystem()
    system.register("oidc", stub_handler)
    return system


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Set up a quiet output manager for tests that don't care about output.

    Installs a PLAIN-format, quiet OutputManager as the global output
    and resets it after the test completes.
    """
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner.

    Returns a CliRunner instance that captures stdout/stderr and
    provides a consistent interface for invoking Typer apps in tests.
    """
    from typer.testing import CliRunner

    return CliRunner()
