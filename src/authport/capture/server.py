"""Ephemeral loopback HTTP server that captures one pasted payload.

The interactive JSON import opens a tiny web form in the user's browser.
:class:`EphemeralImportServer` owns that form's listener for exactly one
capture:

1. Bind ``127.0.0.1:0`` to learn a free port, release that socket, and
   bind the real server to the same port. Another process can win the port
   between release and rebind; that race is accepted and surfaces as
   :class:`~authport.exceptions.BindError`.
2. Serve ``GET /`` (the form) and ``POST /submit`` (the payload) from a
   background thread. The first POST completes the capture; later POSTs are
   answered ``409`` and change nothing.
3. The caller blocks until the capture completes or the deadline passes.
4. The listener is closed before control returns, on every path.

Routes::

    GET  /        -> 200 import form (identical bytes on every request)
    POST /submit  -> 200 acknowledgement, 409 if already captured
                     (Content-Length or chunked bodies up to 1 MiB; 413 above)
    other method on / or /submit -> 405
    anything else -> 404

See Also:
    :class:`authport.login.LoginOrchestrator`, which drives this server for
    :attr:`~authport.models.LoginStrategy.INTERACTIVE_JSON_IMPORT`.
"""

from __future__ import annotations

import logging
import socket
import threading
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, BinaryIO, Callable, Optional
from urllib.parse import urlsplit

from authport.capture.pages import (
    ACK_PAGE,
    ALREADY_RECEIVED_PAGE,
    BAD_REQUEST_PAGE,
    IMPORT_FORM_PAGE,
    LENGTH_REQUIRED_PAGE,
    METHOD_NOT_ALLOWED_PAGE,
    NOT_FOUND_PAGE,
    TOO_LARGE_PAGE,
)
from authport.exceptions import BindError, CaptureTimeoutError, EmptyPayloadError
from authport.models import DEFAULT_IMPORT_TIMEOUT

logger = logging.getLogger(__name__)

LOOPBACK_HOST = "127.0.0.1"

FORM_PATH = "/"
SUBMIT_PATH = "/submit"

MAX_PAYLOAD_BYTES = 1024 * 1024
"""Largest request body accepted on ``POST /submit``."""

_ALLOWED_METHODS = {FORM_PATH: "GET", SUBMIT_PATH: "POST"}


def _find_free_port(host: str = LOOPBACK_HOST) -> int:
    """Ask the OS for a free TCP port on *host* and release it again."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind((host, 0))
        return s.getsockname()[1]


_MAX_CHUNK_LINE = 1024
_MAX_TRAILER_LINES = 64


class _PayloadTooLarge(Exception):
    """A chunked body grew past the payload limit."""


def _read_chunked(rfile: BinaryIO, limit: int) -> bytes:
    """Decode a ``Transfer-Encoding: chunked`` body from *rfile*.

    Chunk extensions and trailer fields are read and discarded.

    Raises:
        _PayloadTooLarge: If the decoded body would exceed *limit* bytes.
        ValueError: If the framing is malformed or the stream ends early.
    """
    body = bytearray()
    while True:
        line = rfile.readline(_MAX_CHUNK_LINE + 1)
        if not line.endswith(b"\n"):
            raise ValueError("truncated or oversized chunk size line")
        size = int(line.split(b";", 1)[0].strip(), 16)
        if size < 0:
            raise ValueError(f"negative chunk size {size}")
        if size == 0:
            break
        if len(body) + size > limit:
            raise _PayloadTooLarge(f"chunked body exceeds {limit} bytes")
        chunk = rfile.read(size)
        if len(chunk) < size:
            raise ValueError("chunk data ended early")
        body += chunk
        if rfile.readline(_MAX_CHUNK_LINE + 1).strip():
            raise ValueError("missing CRLF after chunk data")

    for _ in range(_MAX_TRAILER_LINES):
        trailer = rfile.readline(_MAX_CHUNK_LINE + 1)
        if trailer in (b"\r\n", b"\n", b""):
            return bytes(body)
    raise ValueError("too many trailer fields")


class CaptureSlot:
    """Single-assignment slot for the submitted payload.

    One lock guards both the payload and the completion event, so exactly
    one :meth:`offer` succeeds and a reader that saw the event always sees
    the complete payload.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._completed = threading.Event()
        self._payload: Optional[bytes] = None

    @property
    def completed(self) -> bool:
        return self._completed.is_set()

    def offer(self, payload: bytes) -> bool:
        """Store *payload* if nothing has been stored yet.

        Returns:
            ``True`` if this call completed the slot, ``False`` if it was
            already complete (the stored payload is left untouched).
        """
        with self._lock:
            if self._completed.is_set():
                return False
            self._payload = payload
            self._completed.set()
            return True

    def wait(self, timeout: Optional[float]) -> bool:
        """Block until completion or *timeout* seconds; return whether it completed."""
        return self._completed.wait(timeout)

    def take(self) -> Optional[bytes]:
        """Return the stored payload, or ``None`` if nothing was captured."""
        with self._lock:
            return self._payload


class _ImportHTTPServer(ThreadingHTTPServer):
    """HTTP server that exposes the capture slot and form page to its handlers."""

    daemon_threads = True

    def __init__(self, address: tuple[str, int], slot: CaptureSlot, page: bytes) -> None:
        self.capture_slot = slot
        self.page = page
        super().__init__(address, _ImportRequestHandler)


class _ImportRequestHandler(BaseHTTPRequestHandler):
    server: _ImportHTTPServer
    server_version = "authport"

    def do_GET(self) -> None:
        path = self._path()
        if path == FORM_PATH:
            self._send_html(HTTPStatus.OK, self.server.page)
        else:
            self._reject()

    def do_POST(self) -> None:
        if self._path() == SUBMIT_PATH:
            self._handle_submit()
        else:
            self._reject()

    def do_PUT(self) -> None:
        self._reject()

    def do_DELETE(self) -> None:
        self._reject()

    def do_PATCH(self) -> None:
        self._reject()

    def do_OPTIONS(self) -> None:
        self._reject()

    def _handle_submit(self) -> None:
        transfer_encoding = self.headers.get("Transfer-Encoding", "").lower()
        if "chunked" in transfer_encoding:
            self._handle_chunked_submit()
            return
        if self.headers.get("Content-Length") is None and transfer_encoding:
            self.close_connection = True
            self._send_html(HTTPStatus.LENGTH_REQUIRED, LENGTH_REQUIRED_PAGE)
            return

        try:
            length = int(self.headers.get("Content-Length", "0"))
        except ValueError:
            length = -1
        if length < 0:
            self.close_connection = True
            self._send_html(HTTPStatus.BAD_REQUEST, BAD_REQUEST_PAGE)
            return
        if length > MAX_PAYLOAD_BYTES:
            self.close_connection = True
            self._send_html(HTTPStatus.REQUEST_ENTITY_TOO_LARGE, TOO_LARGE_PAGE)
            return

        try:
            body = self.rfile.read(length) if length else b""
        except OSError as exc:
            logger.warning("Failed to read import body: %s", exc)
            self.close_connection = True
            self._send_html(HTTPStatus.BAD_REQUEST, BAD_REQUEST_PAGE)
            return
        if len(body) < length:
            self._send_html(HTTPStatus.BAD_REQUEST, BAD_REQUEST_PAGE)
            return

        self._offer(body)

    def _handle_chunked_submit(self) -> None:
        self.close_connection = True
        try:
            body = _read_chunked(self.rfile, MAX_PAYLOAD_BYTES)
        except _PayloadTooLarge:
            self._send_html(HTTPStatus.REQUEST_ENTITY_TOO_LARGE, TOO_LARGE_PAGE)
            return
        except (ValueError, OSError) as exc:
            logger.warning("Failed to read chunked import body: %s", exc)
            self._send_html(HTTPStatus.BAD_REQUEST, BAD_REQUEST_PAGE)
            return

        self._offer(body)

    def _offer(self, body: bytes) -> None:
        if self.server.capture_slot.offer(body):
            logger.info("Captured import payload (%d bytes)", len(body))
            self._send_html(HTTPStatus.OK, ACK_PAGE)
        else:
            logger.info("Ignoring import payload received after capture completed")
            self._send_html(HTTPStatus.CONFLICT, ALREADY_RECEIVED_PAGE)

    def _reject(self) -> None:
        allowed = _ALLOWED_METHODS.get(self._path())
        if allowed is None:
            self._send_html(HTTPStatus.NOT_FOUND, NOT_FOUND_PAGE)
        else:
            self._send_html(
                HTTPStatus.METHOD_NOT_ALLOWED,
                METHOD_NOT_ALLOWED_PAGE,
                extra_headers={"Allow": allowed},
            )

    def _path(self) -> str:
        return urlsplit(self.path).path

    def _send_html(
        self,
        status: HTTPStatus,
        body: bytes,
        extra_headers: Optional[dict[str, str]] = None,
    ) -> None:
        self.send_response(status)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Cache-Control", "no-store")
        for name, value in (extra_headers or {}).items():
            self.send_header(name, value)
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


class EphemeralImportServer:
    """Loopback listener that serves the import form and captures one payload.

    One instance serves one capture and cannot be restarted. Use
    :meth:`capture` for the whole lifecycle, or :meth:`start` /
    :meth:`wait` / :meth:`close` (or a ``with`` block) when the caller needs
    the URL before blocking.

    Args:
        page: HTML served on ``GET /``.
        host: Loopback address to bind. Never bind a routable address here.

    Example::

        server = EphemeralImportServer()
        payload = server.capture(timeout=300, on_ready=print)
    """

    def __init__(self, page: bytes = IMPORT_FORM_PAGE, host: str = LOOPBACK_HOST) -> None:
        self._page = page
        self._host = host
        self._slot = CaptureSlot()
        self._httpd: Optional[_ImportHTTPServer] = None
        self._thread: Optional[threading.Thread] = None
        self._state_lock = threading.Lock()
        self._closed = False

    @property
    def port(self) -> int:
        """The bound port. Only valid after :meth:`start`."""
        if self._httpd is None:
            raise RuntimeError("Import server has not been started")
        return self._httpd.server_address[1]

    @property
    def url(self) -> str:
        """The form URL, e.g. ``http://127.0.0.1:49152``."""
        return f"http://{self._host}:{self.port}"

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> str:
        """Bind the listener, start serving in the background, and return the URL.

        Raises:
            BindError: If no loopback listener could be bound.
            RuntimeError: If the server was already started or closed.
        """
        with self._state_lock:
            if self._httpd is not None or self._closed:
                raise RuntimeError("Import server can only be started once")
            try:
                port = _find_free_port(self._host)
                httpd = _ImportHTTPServer((self._host, port), self._slot, self._page)
            except OSError as exc:
                raise BindError(
                    f"Failed to start import server on {self._host}: {exc}"
                ) from exc
            self._httpd = httpd
            self._thread = threading.Thread(
                target=httpd.serve_forever,
                kwargs={"poll_interval": 0.1},
                name="authport-import-server",
                daemon=True,
            )
            self._thread.start()

        logger.info("Import server listening on %s", self.url)
        return self.url

    def wait(self, timeout: float = DEFAULT_IMPORT_TIMEOUT) -> bytes:
        """Block until a payload is captured or *timeout* seconds pass.

        The server is closed before this method returns or raises.

        Returns:
            The captured request body.

        Raises:
            CaptureTimeoutError: If nothing was submitted in time.
            EmptyPayloadError: If the submission had an empty body.
        """
        try:
            if not self._slot.wait(timeout):
                raise CaptureTimeoutError(
                    f"Timed out after {timeout:g}s waiting for JSON input"
                )
            payload = self._slot.take()
        finally:
            self.close()

        if not payload:
            raise EmptyPayloadError("No JSON data received")
        return payload

    def capture(
        self,
        timeout: float = DEFAULT_IMPORT_TIMEOUT,
        on_ready: Optional[Callable[[str], None]] = None,
    ) -> bytes:
        """Run one full capture: start, notify *on_ready* with the URL, wait, close.

        Raises:
            BindError: If the listener could not be bound.
            CaptureTimeoutError: If nothing was submitted in time.
            EmptyPayloadError: If the submission had an empty body.
        """
        url = self.start()
        try:
            if on_ready is not None:
                on_ready(url)
            return self.wait(timeout)
        finally:
            self.close()

    def close(self) -> None:
        """Stop serving and release the listening socket. Safe to call repeatedly."""
        with self._state_lock:
            if self._closed:
                return
            self._closed = True
            httpd, thread = self._httpd, self._thread

        if httpd is None:
            return
        if thread is not None:
            httpd.shutdown()
            thread.join()
        httpd.server_close()
        logger.debug("Import server on port %d closed", httpd.server_address[1])

    def __enter__(self) -> EphemeralImportServer:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
