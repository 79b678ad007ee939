"""Tests for the login orchestrator across all five strategies."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional
from unittest.mock import MagicMock, patch

import httpx
import pytest

from authport.capture import EphemeralImportServer
from authport.exceptions import (
    AuthenticationError,
    BindError,
    CaptureTimeoutError,
    EmptyPayloadError,
    PersistenceError,
)
from authport.login import STRATEGIES, LoginOrchestrator, LoginResult, run_login
from authport.models import AppConfig, CredentialRecord, LoginOptions, LoginStrategy


class _PostingBrowser:
    """Browser double that "submits the form" by POSTing to the opened URL."""

    def __init__(self, body: Optional[bytes] = b'{"accessToken":"x"}') -> None:
        self.body = body
        self.opened: list[str] = []

    def open(self, url: str) -> None:
        self.opened.append(url)
        if self.body is not None:
            httpx.post(url + "/submit", content=self.body, timeout=5)


class _FailingServer:
    """Import server double whose capture raises *exc* after announcing a URL."""

    url = "http://127.0.0.1:1"

    def __init__(self, exc: Exception, announce: bool = True) -> None:
        self.exc = exc
        self.announce = announce

    def capture(self, timeout: float, on_ready: Optional[Callable[[str], None]] = None) -> bytes:
        self.timeout = timeout
        if self.announce and on_ready is not None:
            on_ready(self.url)
        raise self.exc


def _orchestrator(
    authenticator,  # noqa: ANN001
    store,  # noqa: ANN001
    server_factory: Callable[[], object] = EphemeralImportServer,
    browser: Optional[object] = None,
) -> LoginOrchestrator:
    return LoginOrchestrator(
        authenticator,
        store,
        server_factory=server_factory,  # type: ignore[arg-type]
        browser=browser or MagicMock(),  # type: ignore[arg-type]
    )


# -------------------------------------------------------------------------
# Dispatch
# -------------------------------------------------------------------------


class TestDispatch:
    @pytest.mark.parametrize(
        ("strategy", "entry_point"),
        [
            (LoginStrategy.BROWSER_OAUTH, "login_with_google"),
            (LoginStrategy.DEVICE_CODE_OAUTH, "login"),
            (LoginStrategy.AUTH_CODE_OAUTH, "login_with_auth_code"),
            (LoginStrategy.FILE_IMPORT, "import_from_ide"),
        ],
    )
    def test_strategy_calls_one_entry_point(
        self, authenticator, store, quiet_output, strategy: LoginStrategy, entry_point: str
    ) -> None:
        result = _orchestrator(authenticator, store).run(strategy, AppConfig())

        assert [name for name, _ in authenticator.calls] == [entry_point]
        assert len(store.saved) == 1
        assert result == LoginResult(
            strategy=strategy, storage_path=store.location, label="user@example.com"
        )

    def test_every_strategy_has_a_profile(self) -> None:
        assert set(STRATEGIES) == set(LoginStrategy)
        for strategy, profile in STRATEGIES.items():
            assert profile.strategy is strategy
            assert profile.hints

    @pytest.mark.parametrize("payload", [None, b""])
    def test_json_import_profile_refuses_empty_payload(
        self, authenticator, payload: Optional[bytes]
    ) -> None:
        acquire = STRATEGIES[LoginStrategy.INTERACTIVE_JSON_IMPORT].acquire

        with pytest.raises(EmptyPayloadError, match="No JSON data received"):
            acquire(authenticator, AppConfig(), LoginOptions(), payload)

        assert authenticator.calls == []

    def test_none_options_become_defaults(self, authenticator, store, quiet_output) -> None:
        _orchestrator(authenticator, store).run(LoginStrategy.DEVICE_CODE_OAUTH, AppConfig(), None)
        _, options = authenticator.calls[0]
        assert options == LoginOptions()

    def test_options_are_forwarded(self, authenticator, store, quiet_output) -> None:
        options = LoginOptions(no_browser=True, prompt="select_account")
        _orchestrator(authenticator, store).run(LoginStrategy.BROWSER_OAUTH, AppConfig(), options)
        assert authenticator.calls[0][1] is options

    def test_oauth_strategies_never_start_import_server(
        self, authenticator, store, quiet_output
    ) -> None:
        factory = MagicMock()
        _orchestrator(authenticator, store, server_factory=factory).run(
            LoginStrategy.AUTH_CODE_OAUTH, AppConfig()
        )
        factory.assert_not_called()


# -------------------------------------------------------------------------
# Reporting
# -------------------------------------------------------------------------


class TestReporting:
    def test_success_reports_path_label_and_message(
        self, authenticator, store, plain_output, capsys: pytest.CaptureFixture[str]
    ) -> None:
        _orchestrator(authenticator, store).run(LoginStrategy.BROWSER_OAUTH, AppConfig())

        err = capsys.readouterr().err
        assert f"Authentication saved to {store.location}" in err
        assert "Authenticated as user@example.com" in err
        assert "Google authentication successful!" in err

    def test_file_import_uses_imported_as(
        self, authenticator, store, plain_output, capsys: pytest.CaptureFixture[str]
    ) -> None:
        _orchestrator(authenticator, store).run(LoginStrategy.FILE_IMPORT, AppConfig())

        err = capsys.readouterr().err
        assert "Imported as user@example.com" in err
        assert "Token import successful!" in err

    def test_missing_label_skips_label_line(
        self, authenticator, store, plain_output, capsys: pytest.CaptureFixture[str]
    ) -> None:
        authenticator.record = CredentialRecord(provider="kiro", label=None)
        result = _orchestrator(authenticator, store).run(LoginStrategy.DEVICE_CODE_OAUTH, AppConfig())

        err = capsys.readouterr().err
        assert "Authenticated as" not in err
        assert "AWS authentication successful!" in err
        assert result.label is None

    def test_success_output_is_quiet_under_quiet(
        self, authenticator, store, quiet_output, capsys: pytest.CaptureFixture[str]
    ) -> None:
        _orchestrator(authenticator, store).run(LoginStrategy.BROWSER_OAUTH, AppConfig())
        assert capsys.readouterr().err == ""


# -------------------------------------------------------------------------
# Authenticator failures
# -------------------------------------------------------------------------


class TestAuthenticatorFailure:
    def test_device_code_failure_prints_device_code_hint(
        self, authenticator, store, plain_output, capsys: pytest.CaptureFixture[str]
    ) -> None:
        authenticator.fail_with = AuthenticationError("device authorization expired")

        with pytest.raises(AuthenticationError, match="device authorization expired"):
            _orchestrator(authenticator, store).run(LoginStrategy.DEVICE_CODE_OAUTH, AppConfig())

        err = capsys.readouterr().err
        assert "AWS authentication failed: device authorization expired" in err
        assert "Troubleshooting:" in err
        assert "1. Make sure you have an AWS Builder ID" in err
        assert store.saved == []

    def test_file_import_failure_prints_ide_steps(
        self, authenticator, store, plain_output, capsys: pytest.CaptureFixture[str]
    ) -> None:
        authenticator.fail_with = AuthenticationError("Token file not found: /nope")

        with pytest.raises(AuthenticationError):
            _orchestrator(authenticator, store).run(LoginStrategy.FILE_IMPORT, AppConfig())

        err = capsys.readouterr().err
        assert "Token import failed: Token file not found: /nope" in err
        assert "Make sure you have signed in to the IDE first:" in err
        assert "4. Run this command again" in err
        assert store.saved == []

    def test_hints_survive_quiet(
        self, authenticator, store, quiet_output, capsys: pytest.CaptureFixture[str]
    ) -> None:
        authenticator.fail_with = AuthenticationError("denied")

        with pytest.raises(AuthenticationError):
            _orchestrator(authenticator, store).run(LoginStrategy.BROWSER_OAUTH, AppConfig())

        err = capsys.readouterr().err
        assert "Google authentication failed: denied" in err
        assert "Complete the Google login in the browser" in err

    def test_failure_is_logged(
        self, authenticator, store, quiet_output, caplog: pytest.LogCaptureFixture
    ) -> None:
        authenticator.fail_with = AuthenticationError("denied")

        with caplog.at_level("ERROR", logger="authport"):
            with pytest.raises(AuthenticationError):
                _orchestrator(authenticator, store).run(LoginStrategy.AUTH_CODE_OAUTH, AppConfig())

        assert "AWS authentication (auth code) failed: denied" in caplog.text


# -------------------------------------------------------------------------
# Persistence failures
# -------------------------------------------------------------------------


    def test_unexpected_error_is_reported_with_hints(
        self, authenticator, store, plain_output, capsys: pytest.CaptureFixture[str]
    ) -> None:
        authenticator.fail_with = ConnectionError("oidc endpoint unreachable")

        with pytest.raises(AuthenticationError, match="oidc endpoint unreachable") as exc_info:
            _orchestrator(authenticator, store).run(LoginStrategy.DEVICE_CODE_OAUTH, AppConfig())

        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert exc_info.value.authenticator == "recording"
        err = capsys.readouterr().err
        assert "AWS authentication failed: oidc endpoint unreachable" in err
        assert "1. Make sure you have an AWS Builder ID" in err
        assert store.saved == []

    def test_unexpected_error_without_message_uses_type_name(
        self, authenticator, store, plain_output, capsys: pytest.CaptureFixture[str]
    ) -> None:
        authenticator.fail_with = KeyError()

        with pytest.raises(AuthenticationError, match="KeyError"):
            _orchestrator(authenticator, store).run(LoginStrategy.BROWSER_OAUTH, AppConfig())

        assert "Google authentication failed: KeyError" in capsys.readouterr().err

    def test_unexpected_error_is_logged_with_traceback(
        self, authenticator, store, quiet_output, caplog: pytest.LogCaptureFixture
    ) -> None:
        authenticator.fail_with = RuntimeError("provider bug")

        with caplog.at_level("ERROR", logger="authport"):
            with pytest.raises(AuthenticationError):
                _orchestrator(authenticator, store).run(LoginStrategy.AUTH_CODE_OAUTH, AppConfig())

        record = next(r for r in caplog.records if "provider bug" in r.getMessage())
        assert record.exc_info is not None


class TestPersistenceFailure:
    def test_store_error_is_reported_and_reraised(
        self, authenticator, store, plain_output, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with patch.object(store, "save", side_effect=PersistenceError("disk full")):
            with pytest.raises(PersistenceError, match="disk full"):
                _orchestrator(authenticator, store).run(LoginStrategy.BROWSER_OAUTH, AppConfig())

        err = capsys.readouterr().err
        assert "Failed to save auth: disk full" in err
        assert "successful" not in err

    def test_os_error_is_wrapped(self, authenticator, store, quiet_output) -> None:
        with patch.object(store, "save", side_effect=PermissionError("read-only")):
            with pytest.raises(PersistenceError) as exc_info:
                _orchestrator(authenticator, store).run(LoginStrategy.FILE_IMPORT, AppConfig())

        assert isinstance(exc_info.value.__cause__, PermissionError)

    def test_any_store_error_becomes_persistence_error(
        self, authenticator, store, plain_output, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with patch.object(store, "save", side_effect=ValueError("cannot serialise record")):
            with pytest.raises(PersistenceError, match="cannot serialise record") as exc_info:
                _orchestrator(authenticator, store).run(LoginStrategy.BROWSER_OAUTH, AppConfig())

        assert isinstance(exc_info.value.__cause__, ValueError)
        err = capsys.readouterr().err
        assert "Failed to save auth: cannot serialise record" in err
        assert "successful" not in err

    def test_empty_location_is_a_failure(
        self, authenticator, store, plain_output, capsys: pytest.CaptureFixture[str]
    ) -> None:
        store.location = ""

        with pytest.raises(PersistenceError):
            _orchestrator(authenticator, store).run(LoginStrategy.BROWSER_OAUTH, AppConfig())

        err = capsys.readouterr().err
        assert "Authentication saved to" not in err


# -------------------------------------------------------------------------
# Interactive JSON import
# -------------------------------------------------------------------------


class TestInteractiveJSONImport:
    def test_posted_payload_reaches_authenticator(
        self, authenticator, store, plain_output, capsys: pytest.CaptureFixture[str]
    ) -> None:
        browser = _PostingBrowser(b'{"accessToken":"x"}')

        result = _orchestrator(authenticator, store, browser=browser).run(
            LoginStrategy.INTERACTIVE_JSON_IMPORT, AppConfig(import_timeout=10)
        )

        assert authenticator.calls == [("import_from_json", b'{"accessToken":"x"}')]
        assert len(store.saved) == 1
        assert result.storage_path == store.location
        assert len(browser.opened) == 1
        assert browser.opened[0].startswith("http://127.0.0.1:")

        err = capsys.readouterr().err
        assert f"Opening browser: {browser.opened[0]}" in err
        assert "Please paste your JSON in the browser and click Submit." in err
        assert "Imported as user@example.com" in err
        assert "JSON import successful!" in err

    def test_no_browser_prints_url_only(
        self, authenticator, store, plain_output, capsys: pytest.CaptureFixture[str]
    ) -> None:
        browser = MagicMock()
        server = _FailingServer(CaptureTimeoutError("Timed out after 300s waiting for JSON input"))

        with pytest.raises(CaptureTimeoutError):
            _orchestrator(authenticator, store, server_factory=lambda: server, browser=browser).run(
                LoginStrategy.INTERACTIVE_JSON_IMPORT,
                AppConfig(),
                LoginOptions(no_browser=True),
            )

        browser.open.assert_not_called()
        assert f"Open this URL in your browser: {server.url}" in capsys.readouterr().err

    def test_timeout_reports_and_never_saves(
        self, authenticator, store, plain_output, capsys: pytest.CaptureFixture[str]
    ) -> None:
        server = _FailingServer(CaptureTimeoutError("Timed out after 300s waiting for JSON input"))

        with pytest.raises(CaptureTimeoutError):
            _orchestrator(authenticator, store, server_factory=lambda: server).run(
                LoginStrategy.INTERACTIVE_JSON_IMPORT, AppConfig()
            )

        assert server.timeout == 300.0
        assert "Timeout waiting for JSON input" in capsys.readouterr().err
        assert authenticator.calls == []
        assert store.saved == []

    def test_timeout_with_real_server(self, authenticator, store, quiet_output) -> None:
        browser = _PostingBrowser(body=None)

        with pytest.raises(CaptureTimeoutError):
            _orchestrator(authenticator, store, browser=browser).run(
                LoginStrategy.INTERACTIVE_JSON_IMPORT, AppConfig(import_timeout=0.2)
            )

        assert len(browser.opened) == 1
        assert authenticator.calls == []
        assert store.saved == []

    def test_empty_submission_is_reported(
        self, authenticator, store, plain_output, capsys: pytest.CaptureFixture[str]
    ) -> None:
        browser = _PostingBrowser(body=b"")

        with pytest.raises(EmptyPayloadError):
            _orchestrator(authenticator, store, browser=browser).run(
                LoginStrategy.INTERACTIVE_JSON_IMPORT, AppConfig(import_timeout=10)
            )

        assert "No JSON data received" in capsys.readouterr().err
        assert authenticator.calls == []
        assert store.saved == []

    def test_bind_failure_is_reported(
        self, authenticator, store, plain_output, capsys: pytest.CaptureFixture[str]
    ) -> None:
        browser = MagicMock()
        server = _FailingServer(BindError("Failed to start import server on 127.0.0.1"), announce=False)

        with pytest.raises(BindError):
            _orchestrator(authenticator, store, server_factory=lambda: server, browser=browser).run(
                LoginStrategy.INTERACTIVE_JSON_IMPORT, AppConfig()
            )

        browser.open.assert_not_called()
        assert "Failed to start import server" in capsys.readouterr().err
        assert store.saved == []

    def test_invalid_json_uses_json_import_hints(
        self, store, plain_output, capsys: pytest.CaptureFixture[str]
    ) -> None:
        from authport.auth.local import LocalAuthenticator

        browser = _PostingBrowser(body=b"not json")

        with pytest.raises(AuthenticationError):
            _orchestrator(LocalAuthenticator(), store, browser=browser).run(
                LoginStrategy.INTERACTIVE_JSON_IMPORT, AppConfig(import_timeout=10)
            )

        err = capsys.readouterr().err
        assert "JSON import failed: Token JSON could not be parsed" in err
        assert "Make sure it contains a non-empty accessToken field" in err
        assert store.saved == []


# -------------------------------------------------------------------------
# run_login
# -------------------------------------------------------------------------


class TestRunLogin:
    def test_uses_configured_authenticator_and_file_store(
        self, isolated_config: Path, auth_dir: Path, quiet_output
    ) -> None:
        token = isolated_config / "ide-token.json"
        token.write_text('{"accessToken": "aoa123", "email": "dev@example.com"}')
        config = AppConfig(ide_token_path=str(token))

        result = run_login(LoginStrategy.FILE_IMPORT, config)

        assert result.storage_path == str(auth_dir / "kiro-dev_example.com.json")
        assert Path(result.storage_path).is_file()
        assert result.label == "dev@example.com"

    def test_injected_collaborators_are_used(self, authenticator, store, quiet_output) -> None:
        result = run_login(
            LoginStrategy.BROWSER_OAUTH, AppConfig(), authenticator=authenticator, store=store
        )
        assert result.storage_path == store.location
        assert authenticator.calls[0][0] == "login_with_google"

    def test_local_authenticator_rejects_oauth(self, store, plain_output) -> None:
        with pytest.raises(AuthenticationError, match="does not support device code login"):
            run_login(LoginStrategy.DEVICE_CODE_OAUTH, AppConfig(), store=store)
        assert store.saved == []
