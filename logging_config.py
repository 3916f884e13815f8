from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Third-party loggers that flood DEBUG output with per-statement noise.
_QUIET_LOGGERS = ("aiosqlite",)


def setup_logging(logger_name: str | None = None, level_name: str | None = None) -> logging.Logger:
    """Attach stream + rotating-file handlers to *logger_name* once.

    ``level_name`` wins over ``LOG_LEVEL``; the file defaults to
    ``logs/trade_journal.log`` unless ``LOG_FILE`` is set.  Calling again for a
    logger that already has handlers only updates its level.
    """
    resolved_name = (level_name or os.getenv("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, resolved_name, logging.INFO)
    log_path = Path(os.getenv("LOG_FILE", "logs/trade_journal.log"))

    logger = logging.getLogger(logger_name)
    logger.setLevel(level)

    if logger.handlers:
        return logger

    log_path.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    for handler in (
        logging.StreamHandler(),
        RotatingFileHandler(log_path, maxBytes=2_000_000, backupCount=5),
    ):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if logger_name:
        logger.propagate = False
    for noisy in _QUIET_LOGGERS:
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))

    return logger
