"""Pydantic models shared across all authport modules.

This is the single source of truth for data shapes in the project:

**Login inputs** -- :class:`LoginStrategy` selects exactly one login flow per
invocation and :class:`LoginOptions` carries the per-invocation flags.

**Credential records** -- :class:`CredentialRecord` is produced by an
:class:`~authport.auth.base.Authenticator` and consumed by a
:class:`~authport.auth.credential_store.CredentialStore`. The login
orchestrator only ever reads its ``label``.

**Configuration** -- :class:`AppConfig` is serialised as JSON in the user's
config directory and resolved by :func:`authport.config.resolve_config`.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_IMPORT_TIMEOUT = 300.0
"""Seconds the interactive JSON import waits for a submission (5 minutes)."""

DEFAULT_IDE_TOKEN_PATH = "~/.aws/sso/cache/kiro-auth-token.json"
"""Token file written by the IDE after a successful sign-in."""


# --- Login inputs ---


class LoginStrategy(str, enum.Enum):
    """The closed set of login strategies. Exactly one is active per invocation."""

    BROWSER_OAUTH = "browser_oauth"
    DEVICE_CODE_OAUTH = "device_code_oauth"
    AUTH_CODE_OAUTH = "auth_code_oauth"
    FILE_IMPORT = "file_import"
    INTERACTIVE_JSON_IMPORT = "interactive_json_import"


class LoginOptions(BaseModel):
    """Per-invocation login flags.

    Immutable once created. Callers that have no options pass ``None`` and
    the orchestrator substitutes ``LoginOptions()``.
    """

    model_config = ConfigDict(frozen=True)

    no_browser: bool = Field(
        default=False, description="Print URLs instead of opening a browser"
    )
    prompt: str = Field(
        default="", description="Prompt hint forwarded to the authenticator"
    )
    metadata: dict[str, str] = Field(
        default_factory=dict,
        description="Free-form key/value pairs forwarded to the authenticator",
    )


# --- Credential records ---


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CredentialRecord(BaseModel):
    """An opaque credential produced by a successful login.

    Token material lives in :attr:`metadata` and is only interpreted by the
    authenticator that produced it and by whatever later consumes the stored
    file. The login orchestrator reads :attr:`label` for status reporting and
    nothing else.

    Attributes:
        provider: Service the credential belongs to (e.g. ``"kiro"``).
        auth_method: How it was obtained (e.g. ``"social"``, ``"builder-id"``,
            ``"import"``).
        label: Optional human-readable identity such as an email address.
        file_name: Preferred file name inside the credentials directory.
        created_at: UTC time the record was produced.
        metadata: Opaque token material and provider-specific context.
    """

    provider: str = Field(description="Service the credential belongs to")
    auth_method: str = Field(default="import", description="How the credential was obtained")
    label: Optional[str] = Field(default=None, description="Human-readable identity")
    file_name: Optional[str] = Field(
        default=None, description="Preferred file name in the credentials directory"
    )
    created_at: datetime = Field(default_factory=_utcnow)
    metadata: dict[str, Any] = Field(
        default_factory=dict, description="Opaque token material"
    )


# --- Configuration ---


class AppConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/authport/config.json``.

    Loaded by :func:`~authport.config.load_config` and layered with
    environment variables and CLI flags by
    :func:`~authport.config.resolve_config`.
    """

    auth_dir: Optional[str] = Field(
        default=None,
        description="Directory credentials are written to (default: <data dir>/auths)",
    )
    authenticator: str = Field(
        default="local", description="Name of the authenticator to load"
    )
    import_timeout: float = Field(
        default=DEFAULT_IMPORT_TIMEOUT,
        gt=0,
        description="Seconds to wait for the interactive JSON import",
    )
    ide_token_path: str = Field(
        default=DEFAULT_IDE_TOKEN_PATH,
        description="Token file read by the file import strategy",
    )
