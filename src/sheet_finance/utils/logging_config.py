"""Logging configuration for sheet-finance."""

import logging
import sys
import time
from pathlib import Path
from urllib.parse import urlsplit

DEFAULT_LOG_FILE = "sheet_finance.log"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Field names whose values never reach the log
SECRET_FIELDS = {'api_key', 'token', 'secret', 'password'}

# Field names holding sheet URLs; the path carries the sheet key
URL_FIELDS = {'url', 'source_url'}

# Chatty HTTP libraries kept at WARNING unless debugging
THIRD_PARTY_LOGGERS = ("urllib3", "requests", "httpx", "anthropic")


def mask_url(url: str) -> str:
    """Reduce a sheet URL to scheme and host.

    Published CSV and script URLs grant access to the spreadsheet, so only
    the host is logged.
    """
    parts = urlsplit(str(url))
    if not parts.netloc:
        return "***"
    return f"{parts.scheme}://{parts.netloc}/***"


def _sanitize_context(context: dict[str, object]) -> dict[str, object]:
    sanitized: dict[str, object] = {}
    for key, value in context.items():
        lowered = key.lower()
        if lowered in SECRET_FIELDS:
            sanitized[key] = "***"
        elif lowered in URL_FIELDS and value:
            sanitized[key] = mask_url(str(value))
        else:
            sanitized[key] = value
    return sanitized


def setup_logging(
    level: str = "INFO",
    log_file: str | None = DEFAULT_LOG_FILE,
    console_output: bool = True,
) -> logging.Logger:
    """Configure the package logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Path to log file, or None / "" to disable file logging.
        console_output: Whether to also log to stderr.

    Returns:
        The package logger.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger("sheet_finance")
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = []

    if log_file:
        handlers.append(logging.FileHandler(Path(log_file), encoding="utf-8"))
    if console_output:
        handlers.append(logging.StreamHandler(sys.stderr))
    if not handlers:
        handlers.append(logging.NullHandler())

    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    third_party_level = logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger of the package logger.

    Args:
        name: Module name (typically __name__).

    Returns:
        A logger instance for the module.
    """
    if name.startswith("sheet_finance"):
        return logging.getLogger(name)
    return logging.getLogger(f"sheet_finance.{name}")


class LogContext:
    """Logs the start, duration and failure of one operation.

    Context values are masked before logging: secrets entirely, sheet URLs
    down to their host.
    """

    def __init__(self, logger: logging.Logger, operation: str, **context: object):
        self.logger = logger
        self.operation = operation
        self.context = _sanitize_context(context)
        self.started = 0.0

    @property
    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started) * 1000)

    def __enter__(self) -> "LogContext":
        self.started = time.monotonic()
        context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
        self.logger.debug(f"Starting {self.operation}: {context_str}")
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> bool:
        if exc_type is not None:
            self.logger.error(
                f"{self.operation} failed after {self.elapsed_ms}ms: "
                f"{exc_type.__name__}: {exc_val}",
                exc_info=True,
            )
        else:
            self.logger.debug(f"Completed {self.operation} in {self.elapsed_ms}ms")
        return False
