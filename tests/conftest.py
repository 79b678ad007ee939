"""Shared test fixtures for authport.

Provides reusable fixtures for isolated config environments, output state,
fake login collaborators, and running CLI commands. These fixtures are
automatically discovered by pytest and available to all test modules
without explicit imports.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Optional

import pytest

from authport.auth.base import Authenticator
from authport.auth.credential_store import CredentialStore
from authport.exceptions import AuthenticationError
from authport.models import AppConfig, CredentialRecord, LoginOptions
from authport.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> Iterator[None]:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _drop_log_handlers() -> Iterator[None]:
    """Remove handlers installed by ``setup_logging`` during CLI tests."""
    yield
    logger = logging.getLogger("authport")
    for handler in list(logger.handlers):
        if getattr(handler, "_authport_handler", False):
            logger.removeHandler(handler)
            handler.close()


@pytest.fixture(autouse=True)
def _no_proxy_for_loopback(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep httpx from routing requests to the loopback server via a proxy."""
    for var in ["HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("NO_PROXY", "127.0.0.1,localhost")


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path so
    that tests never touch real user config or credentials. Clears all
    AUTHPORT_* environment variables and changes the working directory to
    tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("authport.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "AUTHPORT_AUTH_DIR",
        "AUTHPORT_AUTHENTICATOR",
        "AUTHPORT_IMPORT_TIMEOUT",
        "AUTHPORT_IDE_TOKEN_PATH",
        "NO_COLOR",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def auth_dir(isolated_config: Path) -> Path:
    """Where the file store writes credentials inside the isolated config."""
    return isolated_config / "data" / "authport" / "auths"


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> Iterator[OutputManager]:
    """Set up a quiet output manager for tests that don't care about output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True, no_color=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def plain_output() -> Iterator[OutputManager]:
    """Uncoloured plain output, so ``capsys`` sees exact message text."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------


class RecordingAuthenticator(Authenticator):
    """Authenticator double that records calls and returns a fixed record.

    Args:
        record: Returned by every entry point.
        fail_with: When set, every entry point raises it instead.
    """

    def __init__(
        self,
        record: Optional[CredentialRecord] = None,
        fail_with: Optional[AuthenticationError] = None,
    ) -> None:
        self.record = record or CredentialRecord(
            provider="kiro", auth_method="social", label="user@example.com"
        )
        self.fail_with = fail_with
        self.calls: list[tuple[str, object]] = []

    @property
    def name(self) -> str:
        return "recording"

    def _answer(self, entry_point: str, argument: object = None) -> CredentialRecord:
        self.calls.append((entry_point, argument))
        if self.fail_with is not None:
            raise self.fail_with
        return self.record

    def login_with_google(self, config: AppConfig, options: LoginOptions) -> CredentialRecord:
        return self._answer("login_with_google", options)

    def login(self, config: AppConfig, options: LoginOptions) -> CredentialRecord:
        return self._answer("login", options)

    def login_with_auth_code(self, config: AppConfig, options: LoginOptions) -> CredentialRecord:
        return self._answer("login_with_auth_code", options)

    def import_from_ide(self, config: AppConfig) -> CredentialRecord:
        return self._answer("import_from_ide")

    def import_from_json(self, config: AppConfig, payload: bytes) -> CredentialRecord:
        return self._answer("import_from_json", payload)


class MemoryCredentialStore(CredentialStore):
    """Credential store double that keeps saved records in a list."""

    def __init__(self, location: str = "/tmp/auths/kiro.json") -> None:
        self.location = location
        self.saved: list[CredentialRecord] = []

    def save(self, record: CredentialRecord, config: AppConfig) -> str:
        self.saved.append(record)
        return self.location


@pytest.fixture
def authenticator() -> RecordingAuthenticator:
    return RecordingAuthenticator()


@pytest.fixture
def store() -> MemoryCredentialStore:
    return MemoryCredentialStore()


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
