"""Login orchestrator -- one entry point for every login strategy.

:class:`LoginOrchestrator` runs a single login end to end:

1. Look up the strategy's :class:`~authport.login.strategies.StrategyProfile`.
2. For the interactive JSON import, run an
   :class:`~authport.capture.EphemeralImportServer`, open the browser at its
   URL (unless ``no_browser``), and block until the payload arrives or the
   deadline passes.
3. Call the matching :class:`~authport.auth.base.Authenticator` entry point.
4. Save the record through a :class:`~authport.auth.credential_store.CredentialStore`
   and report where it went.

Each failure is logged, reported on the console, and re-raised; nothing is
saved after a failure. The orchestrator holds no state between runs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from authport import output
from authport.auth.base import Authenticator
from authport.auth.credential_store import CredentialStore, FileCredentialStore
from authport.auth.registry import load_authenticator
from authport.browser import BrowserLauncher
from authport.capture import EphemeralImportServer
from authport.exceptions import (
    AuthenticationError,
    BindError,
    CaptureTimeoutError,
    EmptyPayloadError,
    PersistenceError,
)
from authport.login.strategies import STRATEGIES, StrategyProfile
from authport.models import AppConfig, CredentialRecord, LoginOptions, LoginStrategy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a successful login."""

    strategy: LoginStrategy
    storage_path: str
    label: Optional[str] = None


class LoginOrchestrator:
    """Runs login strategies against an authenticator and a credential store.

    Args:
        authenticator: Performs the credential exchange.
        store: Persists the resulting record.
        server_factory: Builds the import server for the interactive JSON
            import. Called once per run that needs it.
        browser: Opens the import form URL.
    """

    def __init__(
        self,
        authenticator: Authenticator,
        store: CredentialStore,
        server_factory: Callable[[], EphemeralImportServer] = EphemeralImportServer,
        browser: Optional[BrowserLauncher] = None,
    ) -> None:
        self._authenticator = authenticator
        self._store = store
        self._server_factory = server_factory
        self._browser = browser or BrowserLauncher()

    def run(
        self,
        strategy: LoginStrategy,
        config: AppConfig,
        options: Optional[LoginOptions] = None,
    ) -> LoginResult:
        """Run *strategy* and persist the credential it produces.

        Args:
            strategy: Which login flow to run.
            config: Effective configuration.
            options: Per-invocation flags; ``None`` means all defaults.

        Returns:
            A :class:`LoginResult` with the storage path and the record's label.

        Raises:
            BindError: The import form listener could not be bound.
            CaptureTimeoutError: Nothing was pasted before the deadline.
            EmptyPayloadError: The import form was submitted empty.
            AuthenticationError: The authenticator rejected the login or failed
                unexpectedly; unexpected errors are chained as ``__cause__``.
            PersistenceError: The credential store could not save the record,
                whatever it raised.
        """
        options = options or LoginOptions()
        profile = STRATEGIES[strategy]
        logger.info(
            "Starting %s with the '%s' authenticator",
            profile.title,
            self._authenticator.name,
        )

        payload = self._capture_payload(config, options) if profile.captures_payload else None

        try:
            record = profile.acquire(self._authenticator, config, options, payload)
        except AuthenticationError as exc:
            logger.error("%s failed: %s", profile.title, exc)
            self._report_failure(profile, str(exc))
            raise
        except Exception as exc:
            message = str(exc) or type(exc).__name__
            logger.exception("%s failed: %s", profile.title, message)
            self._report_failure(profile, message)
            raise AuthenticationError(message, self._authenticator.name) from exc

        storage_path = self._persist(record, config)
        self._report_success(profile, record, storage_path)
        return LoginResult(strategy=strategy, storage_path=storage_path, label=record.label or None)

    def _report_failure(self, profile: StrategyProfile, message: str) -> None:
        output.error(f"{profile.title} failed: {message}")
        output.hint(profile.hint_heading, profile.hints)

    def _capture_payload(self, config: AppConfig, options: LoginOptions) -> bytes:
        server = self._server_factory()

        def announce(url: str) -> None:
            if options.no_browser:
                output.info(f"Open this URL in your browser: {url}")
            else:
                output.info(f"Opening browser: {url}")
            output.info("Please paste your JSON in the browser and click Submit.")
            if not options.no_browser:
                self._browser.open(url)

        try:
            return server.capture(config.import_timeout, on_ready=announce)
        except BindError as exc:
            logger.error("Failed to start import server: %s", exc)
            output.error(str(exc))
            raise
        except CaptureTimeoutError as exc:
            logger.error("Timeout waiting for JSON input: %s", exc)
            output.error("Timeout waiting for JSON input")
            raise
        except EmptyPayloadError as exc:
            logger.error("No JSON data received")
            output.error(str(exc))
            raise

    def _persist(self, record: CredentialRecord, config: AppConfig) -> str:
        try:
            storage_path = self._store.save(record, config)
        except PersistenceError as exc:
            logger.error("Failed to save auth: %s", exc)
            output.error(f"Failed to save auth: {exc}")
            raise
        except Exception as exc:
            message = str(exc) or type(exc).__name__
            logger.exception("Failed to save auth: %s", message)
            output.error(f"Failed to save auth: {message}")
            raise PersistenceError(f"Failed to save auth: {message}") from exc

        if not storage_path:
            logger.error("Credential store returned no storage location")
            output.error("Failed to save auth: the credential store returned no location")
            raise PersistenceError("Credential store returned no storage location")
        return storage_path

    def _report_success(
        self, profile: StrategyProfile, record: CredentialRecord, storage_path: str
    ) -> None:
        logger.info("%s succeeded; saved to %s", profile.title, storage_path)
        output.info(f"Authentication saved to {storage_path}")
        if record.label:
            output.info(f"{profile.label_prefix} {record.label}")
        output.success(profile.success_message)


def run_login(
    strategy: LoginStrategy,
    config: AppConfig,
    options: Optional[LoginOptions] = None,
    authenticator: Optional[Authenticator] = None,
    store: Optional[CredentialStore] = None,
) -> LoginResult:
    """Run one login with the configured authenticator and the file store.

    A convenience wrapper around :class:`LoginOrchestrator` for callers that
    do not need to inject collaborators.
    """
    orchestrator = LoginOrchestrator(
        authenticator or load_authenticator(config.authenticator),
        store or FileCredentialStore(),
    )
    return orchestrator.run(strategy, config, options)
