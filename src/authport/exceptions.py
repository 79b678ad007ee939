"""Exception hierarchy for authport.

All exceptions inherit from :class:`AuthportError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`authport.exit_codes`.
The login orchestrator reports each failure to the user and re-raises it;
the CLI layer turns the escaped error into the process exit status.

Subclass hierarchy::

    AuthportError (exit 1)
    +-- InvalidUsageError    (exit 2)
    +-- AuthenticationError  (exit 3)
    +-- CaptureTimeoutError  (exit 4)
    +-- EmptyPayloadError    (exit 5)
    +-- PersistenceError     (exit 6)
    +-- BindError            (exit 7)
    +-- ConfigError          (exit 1)
"""

from authport.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_BIND_ERROR,
    EXIT_CAPTURE_TIMEOUT,
    EXIT_EMPTY_PAYLOAD,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_PERSISTENCE_ERROR,
)


class AuthportError(Exception):
    """Base exception for all authport errors.

    Every subclass sets a class-level ``exit_code``. The entry point catches
    this exception type and exits with ``exc.exit_code``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(AuthportError):
    """Raised for invalid CLI arguments."""

    exit_code = EXIT_INVALID_USAGE


class AuthenticationError(AuthportError):
    """Raised when an authenticator rejects or cannot complete a login.

    Args:
        message: Human-readable error description.
        authenticator: Name of the authenticator that failed, if known.
    """

    exit_code = EXIT_AUTH_FAILURE

    def __init__(self, message: str, authenticator: str | None = None):
        self.authenticator = authenticator
        super().__init__(message)


class CaptureTimeoutError(AuthportError, TimeoutError):
    """Raised when nothing is submitted to the import form before the deadline.

    Also a builtin :class:`TimeoutError` so generic timeout handling catches it.
    """

    exit_code = EXIT_CAPTURE_TIMEOUT


class EmptyPayloadError(AuthportError):
    """Raised when the import form was submitted with an empty body."""

    exit_code = EXIT_EMPTY_PAYLOAD


class PersistenceError(AuthportError):
    """Raised when the credential store cannot persist a record."""

    exit_code = EXIT_PERSISTENCE_ERROR


class BindError(AuthportError):
    """Raised when no loopback listener can be bound for the import form."""

    exit_code = EXIT_BIND_ERROR


class ConfigError(AuthportError):
    """Raised for configuration problems (invalid JSON, bad values, unknown authenticator)."""

    exit_code = EXIT_GENERIC_FAILURE
