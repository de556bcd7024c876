"""Tests for shared/logging.py - Logging utilities."""

from __future__ import annotations

import logging
import logging.handlers
import os

import pytest

from arenarank.shared.logging import (
    DEFAULT_LOG_BACKUP_COUNT,
    quiet_library_loggers,
    setup_engine_logger,
)


@pytest.fixture
def engine_logger():
    """Remove handlers added to the shared engine logger after each test."""
    logger = logging.getLogger("arenarank")
    existing = list(logger.handlers)
    yield logger
    for handler in list(logger.handlers):
        if handler not in existing:
            handler.close()
            logger.removeHandler(handler)


class TestSetupEngineLogger:
    """Tests for setup_engine_logger."""

    def test_creates_directory_and_log_file(self, tmp_path, engine_logger):
        log_dir = tmp_path / "logs"

        logger = setup_engine_logger(str(log_dir))
        logger.info("hello")
        for handler in logger.handlers:
            handler.flush()

        log_file = log_dir / "engine.log"
        assert log_file.exists()
        assert "hello" in log_file.read_text()

    def test_returns_named_logger_at_level(self, tmp_path, engine_logger):
        logger = setup_engine_logger(str(tmp_path), level=logging.DEBUG)

        assert logger.name == "arenarank"
        assert logger.level == logging.DEBUG

    def test_rotating_handler_settings(self, tmp_path, engine_logger):
        logger = setup_engine_logger(str(tmp_path), max_bytes=1024)

        rotating = [
            h for h in logger.handlers
            if isinstance(h, logging.handlers.RotatingFileHandler)
            and h.baseFilename == os.path.join(str(tmp_path), "engine.log")
        ]
        assert len(rotating) == 1
        assert rotating[0].maxBytes == 1024
        assert rotating[0].backupCount == DEFAULT_LOG_BACKUP_COUNT

    def test_message_format(self, tmp_path, engine_logger):
        logger = setup_engine_logger(str(tmp_path))
        logging.getLogger("arenarank.engine.test").warning("formatted")
        for handler in logger.handlers:
            handler.flush()

        line = (tmp_path / "engine.log").read_text().strip().splitlines()[-1]
        assert " | WARNING | arenarank.engine.test | formatted" in line


class TestQuietLibraryLoggers:
    """Tests for quiet_library_loggers."""

    def test_sets_levels(self):
        quiet_library_loggers(logging.ERROR)

        assert logging.getLogger("sqlalchemy.engine").level == logging.ERROR
        assert logging.getLogger("asyncpg").level == logging.ERROR

        quiet_library_loggers()
        assert logging.getLogger("sqlalchemy.pool").level == logging.WARNING
