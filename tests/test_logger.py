import logging
import os

import pytest

from egov_scraper.logger import LOG_FILE, setup_logger


@pytest.fixture
def clean_logger():
    logger = logging.getLogger("egov_scraper")
    saved_handlers, saved_level = logger.handlers[:], logger.level
    logger.handlers = []
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers = saved_handlers
    logger.setLevel(saved_level)


def test_setup_logger_writes_rotating_file(tmp_path, clean_logger):
    logger = setup_logger(str(tmp_path / "logs"), "debug")
    assert logger is clean_logger
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 2

    logger.debug("hello")
    for handler in logger.handlers:
        handler.flush()
    with open(os.path.join(tmp_path, "logs", LOG_FILE), encoding="utf-8") as f:
        assert "hello" in f.read()


def test_setup_logger_is_idempotent_and_updates_level(tmp_path, clean_logger):
    setup_logger(str(tmp_path), logging.INFO)
    logger = setup_logger(str(tmp_path), "WARNING")
    assert len(logger.handlers) == 2
    assert logger.level == logging.WARNING
    assert all(h.level == logging.WARNING for h in logger.handlers)


def test_setup_logger_rejects_unknown_level(tmp_path, clean_logger):
    with pytest.raises(ValueError):
        setup_logger(str(tmp_path), "LOUD")
