"""Best-effort launcher for the host's default web browser.

The launcher picks one of three command builders by ``platform.system()``
and spawns it without waiting. A browser that fails to open only costs the
user a copy-and-paste of the URL that is already printed on the console, so
spawn failures are logged at debug level and dropped here. This is the only
place in authport where an error is intentionally swallowed.
"""

from __future__ import annotations

import logging
import platform
import subprocess
import threading
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


def _macos_command(url: str) -> list[str]:
    return ["open", url]


def _windows_command(url: str) -> list[str]:
    # The empty string is the window title; without it ``start`` would treat
    # a quoted URL as the title.
    return ["cmd", "/c", "start", "", url]


def _unix_command(url: str) -> list[str]:
    return ["xdg-open", url]


_COMMAND_BUILDERS: dict[str, Callable[[str], list[str]]] = {
    "Darwin": _macos_command,
    "Windows": _windows_command,
}


def browser_command(url: str, system: Optional[str] = None) -> list[str]:
    """Return the argv that opens *url* on *system* (defaults to this host).

    ``Darwin`` uses ``open``, ``Windows`` uses ``cmd /c start``, and every
    other system uses ``xdg-open``.
    """
    builder = _COMMAND_BUILDERS.get(system or platform.system(), _unix_command)
    return builder(url)


class BrowserLauncher:
    """Open URLs in the default browser, fire-and-forget.

    Args:
        system: Override for ``platform.system()``; mostly for tests.
        spawn: Process factory, :class:`subprocess.Popen` by default.
    """

    def __init__(
        self,
        system: Optional[str] = None,
        spawn: Callable[..., Any] = subprocess.Popen,
    ) -> None:
        self._system = system
        self._spawn = spawn

    def open(self, url: str) -> None:
        """Spawn the platform's open command for *url* and return immediately.

        The child is reaped on a daemon thread so no zombie or
        ``ResourceWarning`` is left behind. Never raises: a failed spawn is
        logged and ignored.
        """
        argv = browser_command(url, self._system)
        try:
            process = self._spawn(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except (OSError, ValueError) as exc:
            logger.debug("Could not open browser with %s: %s", argv[0], exc)
            return
        logger.debug("Opened browser with %s", argv[0])
        threading.Thread(
            target=process.wait, name="authport-browser-reaper", daemon=True
        ).start()
