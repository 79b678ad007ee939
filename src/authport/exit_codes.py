"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to one failure class of a login invocation and is
referenced by the corresponding :class:`~authport.exceptions.AuthportError`
subclass, so wrapper scripts can tell a timeout from a rejected token
without parsing stderr.

Example::

    $ authport login import-json
    $ echo $?
    4   # EXIT_CAPTURE_TIMEOUT -- nothing was pasted in time
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred (including configuration problems)."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_AUTH_FAILURE = 3
"""The authenticator rejected or could not complete the login."""

EXIT_CAPTURE_TIMEOUT = 4
"""No payload was submitted to the local import form before the deadline."""

EXIT_EMPTY_PAYLOAD = 5
"""A payload was submitted but carried no data."""

EXIT_PERSISTENCE_ERROR = 6
"""The credential could not be written to the credential store."""

EXIT_BIND_ERROR = 7
"""No loopback listener could be bound for the local import form."""
