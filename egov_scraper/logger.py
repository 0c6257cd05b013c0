"""Console + rotating file logging for the ``egov_scraper`` logger.

Workflow messages carry a ``[client]`` prefix, so one log file covers a whole
multi-client run.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Union

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_FILE = "egov_scraper.log"
MAX_BYTES = 10 * 1024 * 1024
BACKUP_COUNT = 5


def setup_logger(log_dir: str = "logs", level: Union[int, str] = logging.INFO) -> logging.Logger:
    """Attach handlers once; later calls only adjust the level."""
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"unknown log level: {level}")
        level = resolved

    logger = logging.getLogger("egov_scraper")
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    os.makedirs(log_dir, exist_ok=True)
    fmt = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    handlers = [
        logging.StreamHandler(),
        RotatingFileHandler(os.path.join(log_dir, LOG_FILE), maxBytes=MAX_BYTES,
                            backupCount=BACKUP_COUNT, encoding="utf-8"),
    ]
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(fmt)
        logger.addHandler(handler)

    return logger
