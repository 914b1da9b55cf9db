"""
Tests for logging setup and configuration utilities.
"""

import logging
import sys
from pathlib import Path
from typing import Generator, List
from unittest.mock import Mock, patch

import pytest
from loguru import logger as loguru_logger

from lexicon_upload.infrastructure.config.models import LoggingConfig
from lexicon_upload.infrastructure.logging.setup import InterceptHandler, setup_logging


@pytest.fixture
def restore_root_logger() -> Generator[None, None, None]:
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    loguru_logger.remove()
    loguru_logger.add(sys.stderr)


class TestSetupLogging:
    """Test loguru sink configuration."""

    @patch('lexicon_upload.infrastructure.logging.setup.loguru_logger')
    def test_console_only(self, mock_loguru: Mock, restore_root_logger: None) -> None:
        setup_logging(LoggingConfig(level="info"))

        mock_loguru.remove.assert_called_once()
        mock_loguru.add.assert_called_once()
        args, kwargs = mock_loguru.add.call_args
        assert args[0] is sys.stderr
        assert kwargs["level"] == "INFO"

    @patch('lexicon_upload.infrastructure.logging.setup.loguru_logger')
    def test_console_and_file(self, mock_loguru: Mock, tmp_path: Path, restore_root_logger: None) -> None:
        log_dir = tmp_path / "logs"
        config = LoggingConfig(log_directory=str(log_dir), file_enabled=True, max_file_size="1 MB", backup_count=3)

        setup_logging(config)

        assert log_dir.is_dir()
        assert mock_loguru.add.call_count == 2
        args, kwargs = mock_loguru.add.call_args
        assert args[0] == log_dir / "upload.log"
        assert kwargs["rotation"] == "1 MB"
        assert kwargs["retention"] == 3

    @patch('lexicon_upload.infrastructure.logging.setup.loguru_logger')
    def test_no_sinks(self, mock_loguru: Mock, restore_root_logger: None) -> None:
        setup_logging(LoggingConfig(console_enabled=False))

        mock_loguru.add.assert_not_called()

    @patch('lexicon_upload.infrastructure.logging.setup.loguru_logger')
    def test_standard_logging_is_intercepted(self, mock_loguru: Mock, restore_root_logger: None) -> None:
        setup_logging(LoggingConfig())

        handlers = logging.getLogger().handlers
        assert any(isinstance(handler, InterceptHandler) for handler in handlers)

    @pytest.mark.parametrize("level,aiohttp_level", [
        ("INFO", logging.WARNING),
        ("DEBUG", logging.DEBUG),
    ])
    @patch('lexicon_upload.infrastructure.logging.setup.loguru_logger')
    def test_aiohttp_logger_level(self, mock_loguru: Mock, level: str, aiohttp_level: int,
                                  restore_root_logger: None) -> None:
        setup_logging(LoggingConfig(level=level))

        assert logging.getLogger("aiohttp").level == aiohttp_level


class TestInterceptHandler:
    """Test forwarding of standard logging records."""

    def test_records_reach_loguru(self, restore_root_logger: None) -> None:
        setup_logging(LoggingConfig(console_enabled=False))
        messages: List[str] = []
        loguru_logger.add(lambda message: messages.append(str(message)), format="{level}|{message}")

        logging.getLogger("lexicon_upload.tests").warning("chunk 3 retried")

        assert any("WARNING|chunk 3 retried" in message for message in messages)
