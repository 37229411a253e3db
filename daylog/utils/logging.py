# daylog/utils/logging.py

import logging
from typing import List

from daylog.config.settings import BASE_DIR

LOG_DIR = BASE_DIR / "daylog" / "logs"
LOG_DIR.mkdir(parents=True, exist_ok=True)
LOG_FILE = LOG_DIR / "daylog.log"

# Raised or lowered from Settings.log_level by set_log_level()
_level = logging.INFO
_loggers: List[logging.Logger] = []


def get_logger(name: str = "daylog") -> logging.Logger:
    """
    Return a logger that logs both to file and console.
    Avoids adding duplicate handlers on repeated imports.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger  # avoid duplicate handlers

    logger.setLevel(_level)

    # File handler
    fh = logging.FileHandler(LOG_FILE, encoding="utf-8")
    fh.setLevel(_level)

    # Console handler
    ch = logging.StreamHandler()
    ch.setLevel(logging.WARNING)

    fmt = logging.Formatter(
        "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    fh.setFormatter(fmt)
    ch.setFormatter(fmt)

    logger.addHandler(fh)
    logger.addHandler(ch)
    _loggers.append(logger)
    return logger


def set_log_level(level: str) -> None:
    """
    Apply a level name ('DEBUG', 'INFO', ...) to every logger handed out so
    far and to those created later. Console output stays at WARNING.
    """
    global _level
    _level = getattr(logging, level.strip().upper(), logging.INFO)
    for logger in _loggers:
        logger.setLevel(_level)
        for handler in logger.handlers:
            if isinstance(handler, logging.FileHandler):
                handler.setLevel(_level)
