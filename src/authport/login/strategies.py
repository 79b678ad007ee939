"""Per-strategy dispatch and reporting table.

Every :class:`~authport.models.LoginStrategy` has exactly one
:class:`StrategyProfile` in :data:`STRATEGIES`. A profile names the
authenticator entry point to call and the text shown on success or failure,
so adding a strategy means adding one entry here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from authport.auth.base import Authenticator
from authport.exceptions import EmptyPayloadError
from authport.models import AppConfig, CredentialRecord, LoginOptions, LoginStrategy

Acquire = Callable[[Authenticator, AppConfig, LoginOptions, Optional[bytes]], CredentialRecord]


@dataclass(frozen=True)
class StrategyProfile:
    """How one strategy acquires a credential and how its outcome is reported.

    Attributes:
        strategy: The strategy this profile describes.
        title: Short name used in log lines and failure messages.
        acquire: Calls the matching authenticator entry point. The last
            argument is the captured payload for strategies that capture one,
            ``None`` otherwise.
        hint_heading: Heading printed above the troubleshooting steps.
        hints: Numbered troubleshooting steps shown when the authenticator fails.
        success_message: Final line printed after the credential is saved.
        label_prefix: Prefix for the ``label`` line (``"Authenticated as"``).
        captures_payload: Whether the local import form must run first.
    """

    strategy: LoginStrategy
    title: str
    acquire: Acquire
    hint_heading: str
    hints: tuple[str, ...]
    success_message: str
    label_prefix: str = "Authenticated as"
    captures_payload: bool = False


def _browser_oauth(
    authenticator: Authenticator, config: AppConfig, options: LoginOptions, payload: Optional[bytes]
) -> CredentialRecord:
    return authenticator.login_with_google(config, options)


def _device_code(
    authenticator: Authenticator, config: AppConfig, options: LoginOptions, payload: Optional[bytes]
) -> CredentialRecord:
    return authenticator.login(config, options)


def _auth_code(
    authenticator: Authenticator, config: AppConfig, options: LoginOptions, payload: Optional[bytes]
) -> CredentialRecord:
    return authenticator.login_with_auth_code(config, options)


def _file_import(
    authenticator: Authenticator, config: AppConfig, options: LoginOptions, payload: Optional[bytes]
) -> CredentialRecord:
    return authenticator.import_from_ide(config)


def _json_import(
    authenticator: Authenticator, config: AppConfig, options: LoginOptions, payload: Optional[bytes]
) -> CredentialRecord:
    if not payload:
        raise EmptyPayloadError("No JSON data received")
    return authenticator.import_from_json(config, payload)


STRATEGIES: dict[LoginStrategy, StrategyProfile] = {
    LoginStrategy.BROWSER_OAUTH: StrategyProfile(
        strategy=LoginStrategy.BROWSER_OAUTH,
        title="Google authentication",
        acquire=_browser_oauth,
        hint_heading="Troubleshooting:",
        hints=(
            "Make sure the protocol handler is installed",
            "Complete the Google login in the browser",
            "If the callback fails, try: authport login import (after signing in via the IDE)",
        ),
        success_message="Google authentication successful!",
    ),
    LoginStrategy.DEVICE_CODE_OAUTH: StrategyProfile(
        strategy=LoginStrategy.DEVICE_CODE_OAUTH,
        title="AWS authentication",
        acquire=_device_code,
        hint_heading="Troubleshooting:",
        hints=(
            "Make sure you have an AWS Builder ID",
            "Complete the authorization in the browser",
            "If the callback fails, try: authport login import (after signing in via the IDE)",
        ),
        success_message="AWS authentication successful!",
    ),
    LoginStrategy.AUTH_CODE_OAUTH: StrategyProfile(
        strategy=LoginStrategy.AUTH_CODE_OAUTH,
        title="AWS authentication (auth code)",
        acquire=_auth_code,
        hint_heading="Troubleshooting:",
        hints=(
            "Make sure you have an AWS Builder ID",
            "Complete the authorization in the browser",
            "If the callback fails, try: authport login aws (device code flow)",
        ),
        success_message="AWS authentication successful!",
    ),
    LoginStrategy.FILE_IMPORT: StrategyProfile(
        strategy=LoginStrategy.FILE_IMPORT,
        title="Token import",
        acquire=_file_import,
        hint_heading="Make sure you have signed in to the IDE first:",
        hints=(
            "Open the IDE",
            "Click 'Sign in with Google' (or GitHub)",
            "Complete the login process",
            "Run this command again",
        ),
        success_message="Token import successful!",
        label_prefix="Imported as",
    ),
    LoginStrategy.INTERACTIVE_JSON_IMPORT: StrategyProfile(
        strategy=LoginStrategy.INTERACTIVE_JSON_IMPORT,
        title="JSON import",
        acquire=_json_import,
        hint_heading="Troubleshooting:",
        hints=(
            "Copy the complete token JSON, including the surrounding braces",
            "Make sure it contains a non-empty accessToken field",
            "Run this command again and paste the JSON before the page times out",
        ),
        success_message="JSON import successful!",
        label_prefix="Imported as",
        captures_payload=True,
    ),
}
