"""Authenticator and credential-store collaborators.

The login orchestrator depends on two capabilities defined here:

- :class:`Authenticator` -- performs a login or import and returns a
  :class:`~authport.models.CredentialRecord`.
- :class:`CredentialStore` -- persists a record and returns its location.

Built-in implementations are :class:`LocalAuthenticator` (token imports) and
:class:`FileCredentialStore` (one JSON file per record). Further
authenticators are discovered with :func:`load_authenticator`.

Typical usage::

    from authport.auth import FileCredentialStore, load_authenticator

    authenticator = load_authenticator(config.authenticator)
    record = authenticator.import_from_ide(config)
    path = FileCredentialStore().save(record, config)
"""

from authport.auth.base import Authenticator
from authport.auth.credential_store import CredentialStore, FileCredentialStore
from authport.auth.local import LocalAuthenticator
from authport.auth.registry import available_authenticators, load_authenticator

__all__ = [
    "Authenticator",
    "CredentialStore",
    "FileCredentialStore",
    "LocalAuthenticator",
    "available_authenticators",
    "load_authenticator",
]
