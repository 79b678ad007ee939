"""Abstract base class for authenticators.

An :class:`Authenticator` performs the actual credential exchange for each
login strategy and returns a :class:`~authport.models.CredentialRecord`.
The login orchestrator treats it as opaque: it calls exactly one entry point
per invocation and hands the result to a credential store.

Entry points map one-to-one to :class:`~authport.models.LoginStrategy`:

=============================  ==========================
Strategy                       Entry point
=============================  ==========================
``browser_oauth``              :meth:`login_with_google`
``device_code_oauth``          :meth:`login`
``auth_code_oauth``            :meth:`login_with_auth_code`
``file_import``                :meth:`import_from_ide`
``interactive_json_import``    :meth:`import_from_json`
=============================  ==========================

Every entry point defaults to raising
:class:`~authport.exceptions.AuthenticationError`, so a concrete
authenticator only overrides the strategies it supports.

See Also:
    :mod:`authport.auth.registry` for how authenticators are discovered.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from authport.exceptions import AuthenticationError
from authport.models import AppConfig, CredentialRecord, LoginOptions


class Authenticator(ABC):
    """Performs logins and imports, producing :class:`~authport.models.CredentialRecord` objects.

    Implementations must raise
    :class:`~authport.exceptions.AuthenticationError` for every failure they
    can anticipate; anything else is treated as a bug.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the identifier this authenticator is registered under."""
        ...

    def login_with_google(self, config: AppConfig, options: LoginOptions) -> CredentialRecord:
        """Browser-redirect OAuth login via a social (Google) identity provider."""
        raise self._unsupported("browser OAuth login")

    def login(self, config: AppConfig, options: LoginOptions) -> CredentialRecord:
        """Device-code OAuth login (the user enters a code on another device)."""
        raise self._unsupported("device code login")

    def login_with_auth_code(self, config: AppConfig, options: LoginOptions) -> CredentialRecord:
        """Authorization-code OAuth login with a redirect back to a local callback."""
        raise self._unsupported("authorization code login")

    def import_from_ide(self, config: AppConfig) -> CredentialRecord:
        """Import the token file the IDE wrote after its own sign-in."""
        raise self._unsupported("IDE token import")

    def import_from_json(self, config: AppConfig, payload: bytes) -> CredentialRecord:
        """Import a credential from raw token JSON pasted by the user.

        Args:
            config: Effective configuration.
            payload: The non-empty request body captured by the import form.
        """
        raise self._unsupported("JSON import")

    def _unsupported(self, what: str) -> AuthenticationError:
        return AuthenticationError(
            f"The '{self.name}' authenticator does not support {what}",
            authenticator=self.name,
        )
