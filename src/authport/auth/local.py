"""Built-in authenticator for importing existing tokens.

:class:`LocalAuthenticator` turns token JSON into a
:class:`~authport.models.CredentialRecord` without talking to any network
service. It backs the two import strategies:

* **File import** -- reads the token file the IDE writes after its own
  sign-in (``AppConfig.ide_token_path``).
* **Interactive JSON import** -- parses the bytes pasted into the local web
  form.

The OAuth entry points are inherited unchanged and raise
:class:`~authport.exceptions.AuthenticationError`; OAuth providers are
installed as separate authenticators (see :mod:`authport.auth.registry`).

Accepted token JSON (camelCase keys, unknown keys preserved)::

    {
      "accessToken": "aoa...",        # required
      "refreshToken": "aor...",
      "email": "user@example.com",
      "provider": "BuilderId",
      "authMethod": "social",
      "region": "us-east-1",
      "clientId": "...",
      "clientSecret": "...",
      "expiresAt": "2030-01-01T00:00:00Z"
    }
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from authport.auth.base import Authenticator
from authport.exceptions import AuthenticationError
from authport.models import AppConfig, CredentialRecord

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class ImportedToken(BaseModel):
    """Token JSON as written by the IDE or pasted by the user."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    access_token: str = Field(alias="accessToken", min_length=1)
    refresh_token: Optional[str] = Field(default=None, alias="refreshToken")
    email: Optional[str] = None
    provider: Optional[str] = None
    auth_method: Optional[str] = Field(default=None, alias="authMethod")
    region: Optional[str] = None
    client_id: Optional[str] = Field(default=None, alias="clientId")
    client_secret: Optional[str] = Field(default=None, alias="clientSecret")
    expires_at: Optional[str] = Field(default=None, alias="expiresAt")


def parse_token(payload: bytes) -> ImportedToken:
    """Decode and validate token JSON.

    Raises:
        AuthenticationError: If *payload* is not UTF-8, not a JSON object, or
            lacks a non-empty ``accessToken``.
    """
    try:
        text = payload.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise AuthenticationError(f"Token JSON is not valid UTF-8: {exc}", "local") from exc

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise AuthenticationError(f"Token JSON could not be parsed: {exc}", "local") from exc

    if not isinstance(data, dict):
        raise AuthenticationError("Token JSON must be an object", "local")

    try:
        return ImportedToken.model_validate(data)
    except ValidationError as exc:
        fields = ", ".join(
            ".".join(str(part) for part in err["loc"]) for err in exc.errors()
        )
        raise AuthenticationError(f"Token JSON is missing or has invalid fields: {fields}", "local") from exc


def _file_name(provider: str, token: ImportedToken) -> Optional[str]:
    if not token.email:
        return None
    safe = _UNSAFE_FILENAME_CHARS.sub("_", token.email).strip("._")
    return f"{provider}-{safe}.json" if safe else None


class LocalAuthenticator(Authenticator):
    """Import-only authenticator.

    Args:
        provider: Provider name stamped on every record it produces.
    """

    def __init__(self, provider: str = "kiro") -> None:
        self._provider = provider

    @property
    def name(self) -> str:
        return "local"

    def import_from_ide(self, config: AppConfig) -> CredentialRecord:
        path = Path(config.ide_token_path).expanduser()
        if not path.is_file():
            raise AuthenticationError(f"Token file not found: {path}", self.name)
        try:
            payload = path.read_bytes()
        except OSError as exc:
            raise AuthenticationError(f"Cannot read token file {path}: {exc}", self.name) from exc

        logger.info("Importing IDE token from %s", path)
        return self._to_record(parse_token(payload), auth_method="ide-import")

    def import_from_json(self, config: AppConfig, payload: bytes) -> CredentialRecord:
        return self._to_record(parse_token(payload), auth_method="json-import")

    def _to_record(self, token: ImportedToken, auth_method: str) -> CredentialRecord:
        return CredentialRecord(
            provider=self._provider,
            auth_method=token.auth_method or auth_method,
            label=token.email,
            file_name=_file_name(self._provider, token),
            metadata=token.model_dump(by_alias=True, exclude_none=True),
        )
