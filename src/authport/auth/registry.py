"""Authenticator discovery.

Built-in authenticators are looked up first. Anything else is discovered
through the ``authport.authenticators`` entry-point group, so OAuth
providers can ship as separate packages::

    [project.entry-points."authport.authenticators"]
    kiro = "authport_kiro:KiroAuthenticator"

The configured name (``AppConfig.authenticator``, ``AUTHPORT_AUTHENTICATOR``
or ``--authenticator``) selects which one a login uses.
"""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Callable

from authport.auth.base import Authenticator
from authport.auth.local import LocalAuthenticator
from authport.exceptions import ConfigError

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "authport.authenticators"
"""The entry-point group third-party authenticators register under."""

_BUILTIN: dict[str, Callable[[], Authenticator]] = {
    "local": LocalAuthenticator,
}


def _entry_points() -> list[importlib.metadata.EntryPoint]:
    return list(importlib.metadata.entry_points(group=ENTRY_POINT_GROUP))


def available_authenticators() -> list[str]:
    """Return the names of every built-in and installed authenticator, sorted."""
    names = set(_BUILTIN)
    names.update(ep.name for ep in _entry_points())
    return sorted(names)


def load_authenticator(name: str) -> Authenticator:
    """Instantiate the authenticator registered under *name*.

    Raises:
        ConfigError: If no authenticator has that name, the entry point fails
            to load, or it does not produce an :class:`Authenticator`.
    """
    factory = _BUILTIN.get(name)
    if factory is None:
        for ep in _entry_points():
            if ep.name != name:
                continue
            try:
                factory = ep.load()
            except Exception as exc:
                logger.warning("Failed to load authenticator '%s': %s", name, exc)
                raise ConfigError(f"Failed to load authenticator '{name}': {exc}") from exc
            break

    if factory is None:
        available = ", ".join(available_authenticators())
        raise ConfigError(
            f"Unknown authenticator '{name}'. Available authenticators: {available}"
        )

    authenticator = factory()
    if not isinstance(authenticator, Authenticator):
        raise ConfigError(
            f"Authenticator '{name}' is a {type(authenticator).__name__}, "
            "not an Authenticator"
        )
    logger.debug("Loaded authenticator '%s'", name)
    return authenticator
