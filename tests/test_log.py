"""Tests for authport.log."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.logging import RichHandler

from authport.log import setup_logging


def _installed() -> list[logging.Handler]:
    return [
        h for h in logging.getLogger("authport").handlers if getattr(h, "_authport_handler", False)
    ]


class TestSetupLogging:
    def test_file_handler_only_by_default(self, isolated_config: Path) -> None:
        setup_logging()

        handlers = _installed()
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.FileHandler)
        assert handlers[0].level == logging.INFO

    def test_verbose_adds_rich_handler(self, isolated_config: Path) -> None:
        setup_logging(verbose=True)
        assert any(isinstance(h, RichHandler) for h in _installed())

    def test_repeat_calls_replace_handlers(self, isolated_config: Path) -> None:
        setup_logging(verbose=True)
        setup_logging(verbose=True)
        assert len(_installed()) == 2

    def test_records_reach_log_file(self, isolated_config: Path) -> None:
        setup_logging()
        logging.getLogger("authport.login").info("Starting JSON import")
        logging.getLogger("authport.login").debug("not written")

        text = (isolated_config / "data" / "authport" / "logs" / "authport.log").read_text()
        assert "INFO     authport.login: Starting JSON import" in text
        assert "not written" not in text
