# -*- coding: utf-8 -*-
# storefront/logging_setup.py
from __future__ import annotations
import logging, logging.handlers
import sys
from pathlib import Path

LOG_FILE_NAME = "storefront.log"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"

# loggers that do not propagate to root under uvicorn
SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi")


def setup_logging(settings) -> Path:
    """
    Route application and server logs to
    STOREFRONT_DATA_ROOT/logs/storefront.log (rotating), plus stderr when
    LOG_TO_CONSOLE is set. Safe to call more than once.
    """
    log_dir = Path(settings.STOREFRONT_DATA_ROOT).expanduser() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / LOG_FILE_NAME
    level = logging.getLevelName(str(settings.LOG_LEVEL).upper())
    if not isinstance(level, int):
        level = logging.INFO

    handlers = [_file_handler(log_path, level)]
    if settings.LOG_TO_CONSOLE:
        handlers.append(_console_handler(level))

    root = logging.getLogger()
    root.setLevel(level)
    _attach(root, handlers)

    for name in SERVER_LOGGERS:
        lg = logging.getLogger(name)
        lg.setLevel(level)
        if not lg.propagate:
            _attach(lg, handlers)

    # SQL statements only when DB_ECHO asks for them
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if getattr(settings, "DB_ECHO", False) else logging.WARNING
    )
    return log_path


def _file_handler(path: Path, level: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(path, maxBytes=5_000_000, backupCount=3, encoding="utf-8", delay=True)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.setLevel(level)
    return handler


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.setLevel(level)
    return handler


def _attach(logger: logging.Logger, handlers) -> None:
    for handler in handlers:
        if not any(_same_target(h, handler) for h in logger.handlers):
            logger.addHandler(handler)


def _same_target(existing: logging.Handler, new: logging.Handler) -> bool:
    if isinstance(new, logging.handlers.RotatingFileHandler):
        return getattr(existing, "baseFilename", None) == new.baseFilename
    return (
        type(existing) is logging.StreamHandler
        and getattr(existing, "stream", None) is getattr(new, "stream", None)
    )
