"""Credential persistence.

:class:`CredentialStore` is the interface the login orchestrator saves
through. :class:`FileCredentialStore` is the built-in implementation: one
JSON file per record under ``AppConfig.auth_dir`` (by default
``~/.local/share/authport/auths/``), written atomically with ``0o600``
permissions so token material is never world-readable, even momentarily.

See Also:
    :class:`~authport.login.LoginOrchestrator` -- the only writer.
    :mod:`authport.commands.credentials` -- list, show, and remove.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from authport.config import atomic_write, get_auth_dir
from authport.exceptions import InvalidUsageError, PersistenceError
from authport.models import AppConfig, CredentialRecord

logger = logging.getLogger(__name__)


class CredentialStore(ABC):
    """Persists credential records."""

    @abstractmethod
    def save(self, record: CredentialRecord, config: AppConfig) -> str:
        """Persist *record* and return where it was stored.

        Raises:
            PersistenceError: If the record could not be written.
        """
        ...


class FileCredentialStore(CredentialStore):
    """Stores each record as a JSON file in the configured auth directory.

    Example::

        store = FileCredentialStore()
        path = store.save(record, config)
        assert store.load(Path(path)).label == record.label
    """

    def file_name_for(self, record: CredentialRecord) -> str:
        """Return the file name *record* is stored under.

        Uses ``record.file_name`` (reduced to its final path component) when
        present, otherwise ``<provider>-<auth_method>-<timestamp>.json``.
        """
        if record.file_name:
            name = Path(record.file_name).name
        else:
            stamp = record.created_at.strftime("%Y%m%d%H%M%S")
            name = f"{record.provider}-{record.auth_method}-{stamp}"
        if not name.endswith(".json"):
            name += ".json"
        return name

    def save(self, record: CredentialRecord, config: AppConfig) -> str:
        path = get_auth_dir(config) / self.file_name_for(record)
        text = record.model_dump_json(indent=2) + "\n"
        try:
            atomic_write(path, text, mode=0o600)
        except OSError as exc:
            raise PersistenceError(f"Could not write credential to {path}: {exc}") from exc
        logger.info("Saved %s credential to %s", record.provider, path)
        return str(path)

    def list_paths(self, config: AppConfig) -> list[Path]:
        """Return every stored credential file, sorted by name."""
        directory = get_auth_dir(config)
        if not directory.is_dir():
            return []
        return sorted(p for p in directory.glob("*.json") if p.is_file())

    def resolve(self, config: AppConfig, name: str) -> Path:
        """Map a user-supplied credential name to its file path.

        Accepts the name with or without the ``.json`` suffix.

        Raises:
            InvalidUsageError: If *name* contains a path separator.
        """
        if not name or Path(name).name != name:
            raise InvalidUsageError(f"Invalid credential name: {name!r}")
        if not name.endswith(".json"):
            name += ".json"
        return get_auth_dir(config) / name

    def load(self, path: Path) -> Optional[CredentialRecord]:
        """Load the record stored at *path*.

        Returns:
            The record, or ``None`` if the file is missing or unreadable.
        """
        if not path.is_file():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return CredentialRecord.model_validate(data)
        except (json.JSONDecodeError, ValueError, OSError):
            return None

    def delete(self, path: Path) -> bool:
        """Delete the file at *path*; return whether anything was removed."""
        if not path.is_file():
            return False
        path.unlink()
        logger.info("Removed credential %s", path)
        return True
