"""
logger.py — Loggers du projet (console + fichier journalier).
"""

from __future__ import annotations

from collections.abc import Callable
import functools
import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Protocol, TypeVar, cast

from shared.utils.config import LOG_FILE_PATH, LOG_LEVEL, LOG_ROTATION_DAYS, LOG_TO_FILE

F = TypeVar("F", bound=Callable[..., Any])

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


class LoggerProtocol(Protocol):
    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None: ...


def _file_handler(name: str) -> logging.Handler | None:
    log_dir = Path(LOG_FILE_PATH)
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError:
        return None
    filename = log_dir / f"{name.split('.')[0].lower()}.log"
    handler = TimedRotatingFileHandler(
        filename,
        when="midnight",
        backupCount=LOG_ROTATION_DAYS,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(_FORMAT, _DATEFMT))
    return handler


def get_logger(name: str) -> logging.Logger:
    """
    Retourne un logger configuré (console + fichier), une seule fois par nom.
    """
    logger = logging.getLogger(name)
    if getattr(logger, "_clipjoin_configured", False):
        return logger

    logger.setLevel(LOG_LEVEL)

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(_FORMAT, _DATEFMT))
    logger.addHandler(console)

    if LOG_TO_FILE:
        handler = _file_handler(name)
        if handler is not None:
            logger.addHandler(handler)

    logger.propagate = False
    setattr(logger, "_clipjoin_configured", True)
    return logger


def ensure_logger(logger: LoggerProtocol | None, name: str) -> LoggerProtocol:
    """Retourne `logger` s'il est fourni, sinon le logger du module `name`."""
    if logger is not None:
        return logger
    return get_logger(name)


def with_child_logger(func: F) -> F:
    """
    Décorateur : remplace le `logger=` reçu par un logger enfant nommé d'après la fonction.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, logger: LoggerProtocol | None = None, **kwargs: Any) -> Any:
        if isinstance(logger, logging.Logger):
            logger = logger.getChild(func.__name__)
        return func(*args, logger=logger, **kwargs)

    return cast(F, wrapper)
