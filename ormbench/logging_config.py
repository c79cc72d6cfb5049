"""
Centralized logging configuration for ormbench.

Benchmark progress and summary lines are ordinary records on the ``ormbench``
logger hierarchy. ``setup_logging`` routes them to stdout, and optionally to a
rotating file, for every entry point.
"""

import contextlib
import functools
import inspect
import logging
import logging.config
import os
import sys
import time
from typing import Dict, Any, Iterator

LOGGER_NAME = "ormbench"

# Client libraries log connection chatter that would interleave with results.
DRIVER_LOGGERS = ("asyncpg", "sqlalchemy.engine", "pymongo")

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_FORMATS = {
    "production": "%(asctime)s %(levelname)s [%(name)s] %(message)s (%(pathname)s:%(lineno)d)",
    "development": "%(asctime)s %(levelname)-8s %(name)-20s %(message)s",
}

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


def get_log_level() -> str:
    """Level name from ORMBENCH_LOG_LEVEL, INFO when unset."""
    return os.getenv("ORMBENCH_LOG_LEVEL", "INFO").upper()


def get_log_format() -> str:
    env = os.getenv("ORMBENCH_ENV", "development").lower()
    return LOG_FORMATS.get(env, LOG_FORMATS["development"])


def _file_handler(path: str, level: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "detailed",
        "filename": path,
        "maxBytes": LOG_FILE_MAX_BYTES,
        "backupCount": LOG_FILE_BACKUPS,
    }


def get_logging_config() -> Dict[str, Any]:
    """Build the dictConfig mapping for the current environment."""
    level = get_log_level()
    log_file = os.getenv("ORMBENCH_LOG_FILE")

    handlers: Dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": "standard",
            "stream": sys.stdout,
        },
    }
    bench_handlers = ["console"]
    if log_file:
        handlers["file"] = _file_handler(log_file, level)
        bench_handlers.append("file")

    loggers: Dict[str, Any] = {
        LOGGER_NAME: {"level": level, "handlers": bench_handlers, "propagate": False},
    }
    for name in DRIVER_LOGGERS:
        loggers[name] = {"level": "WARNING", "handlers": ["console"], "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {"format": get_log_format(), "datefmt": DATE_FORMAT},
            "detailed": {
                "format": "%(asctime)s %(levelname)s [%(name)s] %(funcName)s:%(lineno)d %(message)s",
                "datefmt": DATE_FORMAT,
            },
        },
        "handlers": handlers,
        "loggers": loggers,
        "root": {"level": "WARNING", "handlers": ["console"]},
    }


def setup_logging() -> None:
    """Apply the logging configuration. Called once by the CLI."""
    logging.config.dictConfig(get_logging_config())

    logger = logging.getLogger(f"{LOGGER_NAME}.logging")
    logger.debug("Log level %s", get_log_level())
    log_file = os.getenv("ORMBENCH_LOG_FILE")
    if log_file:
        logger.info("Also logging to %s", log_file)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger placed under the ``ormbench`` hierarchy.

    Args:
        name: Logger name, usually the calling module's ``__name__``

    Returns:
        Logger instance
    """
    if name == "__main__":
        name = f"{LOGGER_NAME}.main"
    elif not name.startswith(LOGGER_NAME):
        name = f"{LOGGER_NAME}.{name}"
    return logging.getLogger(name)


@contextlib.contextmanager
def _timed(logger: logging.Logger, operation: str) -> Iterator[None]:
    started = time.perf_counter()
    try:
        yield
    except Exception as e:
        logger.error("%s failed after %.3fs: %s", operation, time.perf_counter() - started, e)
        raise
    logger.debug("%s took %.3fs", operation, time.perf_counter() - started)


def log_performance(logger: logging.Logger, operation: str):
    """
    Decorator logging how long a call took, at DEBUG on success and ERROR on failure.

    Works for plain functions and coroutine functions alike.

    Args:
        logger: Logger instance to use
        operation: Description of the operation being timed
    """

    def decorator(func):
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                with _timed(logger, operation):
                    return await func(*args, **kwargs)

            return async_wrapper

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            with _timed(logger, operation):
                return func(*args, **kwargs)

        return sync_wrapper

    return decorator
