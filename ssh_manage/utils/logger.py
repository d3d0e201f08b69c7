"""
Logging setup for the command surface.

Console logs go to stderr so that stdout only ever carries the JSON payload.
ContextAwareLogger renders ``extra`` attributes as pipe-delimited ``k=v``
pairs appended to the message.
"""

import logging
import sys
from typing import Optional, Union

from ..config import get_config
from ..exceptions import get_correlation_id

_function_logger = None

# Keys whose values must never reach a log line
_REDACTED_KEYS = frozenset({"auth_key", "token", "password"})

# LogRecord attribute names that cannot be passed through ``extra``
_RESERVED_RECORD_KEYS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime"}


class ContextAwareLogger:
    """
    Logger wrapper that formats extra attributes in message while preserving them.
    """

    def __init__(self, logger):
        """Initialize with an existing logger."""
        self.logger = logger

    def _log_with_formatted_extra(self, level, msg, **kwargs):
        """
        Log with extra data formatted into the message.

        Args:
            level: Logging level method to use
            msg: Log message
            **kwargs: Additional arguments including 'extra'
        """
        extra = kwargs.pop("extra", {}) or {}
        extra = {k: ("***" if k in _REDACTED_KEYS else v) for k, v in extra.items()}

        if extra:
            extra_str = " | ".join([f"{k}={v}" for k, v in extra.items()])
            full_msg = f"{msg} | {extra_str}"
        else:
            full_msg = msg

        safe_extra = {k: v for k, v in extra.items() if k not in _RESERVED_RECORD_KEYS}

        log_method = getattr(self.logger, level)
        log_method(full_msg, extra=safe_extra, **kwargs)

    def set_level(self, level):
        """Set the logging level of the underlying logger."""
        self.logger.setLevel(level)

    def info(self, msg, **kwargs):
        """Log at INFO level with formatted extra."""
        self._log_with_formatted_extra("info", msg, **kwargs)

    def error(self, msg, **kwargs):
        """Log at ERROR level with formatted extra."""
        self._log_with_formatted_extra("error", msg, **kwargs)

    def warning(self, msg, **kwargs):
        """Log at WARNING level with formatted extra."""
        self._log_with_formatted_extra("warning", msg, **kwargs)

    def debug(self, msg, **kwargs):
        """Log at DEBUG level with formatted extra."""
        self._log_with_formatted_extra("debug", msg, **kwargs)

    def exception(self, msg, **kwargs):
        """Log exception with formatted extra."""
        self._log_with_formatted_extra("exception", msg, **kwargs)


class CorrelationFilter(logging.Filter):
    """
    Logging filter that adds the invocation correlation ID to log records.
    """

    def filter(self, record):
        """
        Add correlation_id to the log record if one is active.

        Args:
            record: LogRecord to modify

        Returns:
            True to include the record in the log output
        """
        record.correlation_id = get_correlation_id() or "-"
        return True


def configure_logging(
    function_name: str,
    log_level: Optional[Union[int, str]] = None,
    stream=None,
) -> "ContextAwareLogger":
    """
    Configure console logging for one command invocation.

    Args:
        function_name: Name of the command being run
        log_level: Logging level (default: from config.logging.level)
        stream: Output stream (default: sys.stderr)

    Returns:
        The configured logger wrapped with ContextAwareLogger
    """
    global _function_logger

    app_config = get_config()

    if log_level is None:
        log_level = app_config.logging.level

    if isinstance(log_level, str):
        log_level = getattr(logging, log_level.upper(), logging.WARNING)

    logger = logging.getLogger(f"ssh_manage.{function_name}")
    logger.setLevel(log_level)
    logger.propagate = False

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(app_config.logging.format))
    console_handler.addFilter(CorrelationFilter())
    logger.addHandler(console_handler)

    wrapped_logger = ContextAwareLogger(logger)
    wrapped_logger.debug("Command logger configured", extra={"function_name": function_name})

    _function_logger = wrapped_logger
    return wrapped_logger


def reset_logging() -> None:
    """Forget the configured command logger."""
    global _function_logger
    _function_logger = None


def get_logger() -> "ContextAwareLogger":
    """Get the command logger, falling back to the package logger."""
    if _function_logger is not None:
        return _function_logger
    return ContextAwareLogger(logging.getLogger("ssh_manage"))
