import logging
from logging.handlers import RotatingFileHandler

import pytest

from sheetsguard.infrastructure.monitoring.logger_setup import resolve_log_level, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


@pytest.mark.parametrize("level, expected", [
    ("debug", logging.DEBUG),
    ("WARNING", logging.WARNING),
    (logging.ERROR, logging.ERROR),
    ("nonsense", logging.INFO),
])
def test_resolve_log_level(level, expected):
    assert resolve_log_level(level) == expected


def test_setup_logging_console_only(restore_root_logger):
    setup_logging(log_level="warning")
    assert restore_root_logger.level == logging.WARNING
    assert len(restore_root_logger.handlers) == 1
    assert logging.getLogger("googleapiclient.discovery_cache").level == logging.ERROR


def test_setup_logging_with_file(restore_root_logger, tmp_path):
    log_file = tmp_path / "sheetsguard.log"
    setup_logging(log_level=logging.DEBUG, log_file=str(log_file))
    assert any(isinstance(h, RotatingFileHandler) for h in restore_root_logger.handlers)
    logging.getLogger("sheetsguard.test").debug("hello file")
    for handler in restore_root_logger.handlers:
        handler.flush()
    assert "hello file" in log_file.read_text(encoding="utf-8")
