"""
Logging for the portal automation worker.

All loggers hang off the "portal_worker" logger, which setup_logging()
configures once per process from LoggingSettings. Pipeline runs and
sessions log through a LoggerAdapter that tags each message with its id.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler

from portal_worker.config.settings import LoggingSettings

ROOT_LOGGER_NAME = "portal_worker"

_configured = False


def setup_logging(
    settings: LoggingSettings | None = None,
    level: str | None = None,
) -> logging.Logger:
    """
    Attach console and/or rotating file handlers to the worker logger.

    Only the first call has an effect; later calls return the logger as
    configured. Use reset_logging() to start over.

    Args:
        settings: Logging section of the worker settings (defaults if None)
        level: Level name that wins over settings.level, e.g. "DEBUG"

    Returns:
        The "portal_worker" logger
    """
    global _configured

    root = logging.getLogger(ROOT_LOGGER_NAME)
    if _configured:
        return root

    settings = settings or LoggingSettings()
    numeric_level = logging.getLevelName((level or settings.level).upper())
    formatter = logging.Formatter(fmt=settings.format, datefmt=settings.date_format)

    handlers: list[logging.Handler] = []
    if settings.log_to_console:
        handlers.append(logging.StreamHandler(sys.stdout))
    if settings.file_path is not None:
        settings.file_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(
            filename=str(settings.file_path),
            maxBytes=settings.max_file_size_mb * 1024 * 1024,
            backupCount=settings.backup_count,
            encoding="utf-8",
        ))

    root.handlers.clear()
    root.setLevel(numeric_level)
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    # Worker messages are handled here only, never by the process root logger
    root.propagate = False
    _configured = True
    return root


def reset_logging() -> None:
    """Close and detach the worker's handlers so setup_logging() runs again."""
    global _configured

    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        handler.close()
        root.removeHandler(handler)
    _configured = False


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Return a logger below "portal_worker".

    Module names already inside the package are used as-is; anything else
    (e.g. "server.access") is prefixed.
    """
    if not name:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


class LoggerAdapter(logging.LoggerAdapter):
    """
    Appends "[key=value]" tags to every message.

    Example:
        >>> log = LoggerAdapter(get_logger(__name__), {"run_id": "3f2a"})
        >>> log.info("Step ok")  # "Step ok [run_id=3f2a]"
    """

    def process(self, msg, kwargs):
        if self.extra:
            tags = " ".join(f"[{k}={v}]" for k, v in self.extra.items())
            msg = f"{msg} {tags}"
        return msg, kwargs


def get_logger_with_context(name: str | None = None, **context: str) -> LoggerAdapter:
    """Logger for `name` whose messages carry the given id tags."""
    return LoggerAdapter(get_logger(name), context)
