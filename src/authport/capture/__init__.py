"""Loopback capture server for the interactive JSON import.

See Also:
    :class:`~authport.capture.server.EphemeralImportServer`
"""

from authport.capture.pages import IMPORT_FORM_PAGE
from authport.capture.server import (
    LOOPBACK_HOST,
    MAX_PAYLOAD_BYTES,
    CaptureSlot,
    EphemeralImportServer,
)

__all__ = [
    "CaptureSlot",
    "EphemeralImportServer",
    "IMPORT_FORM_PAGE",
    "LOOPBACK_HOST",
    "MAX_PAYLOAD_BYTES",
]
