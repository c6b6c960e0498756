"""Logging utilities for iterconduit.

Every module obtains its logger through :func:`get_logger` so that all
engine output shares one namespace (``iterconduit.*``), one handler and one
format. Nothing is emitted below WARNING unless the caller opts in.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Optional

_DEFAULT_LEVEL = logging.WARNING
_DEFAULT_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

# Settings applied to loggers created after configure_logging().
_format_string: str = _DEFAULT_FORMAT
_stream: Optional[IO[str]] = None

# Module-level logger cache
_loggers: dict[str, logging.Logger] = {}


def _coerce_level(level: int | str) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.WARNING)
    return level


def _make_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(_stream if _stream is not None else sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_format_string))
    return handler


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get or create a logger for the given module name.

    Loggers are cached to avoid duplicate handlers. The logger name should
    typically be ``__name__`` from the calling module.

    Args:
        name: Logger name (typically ``__name__``). If None, returns the
            package logger.

    Returns:
        Configured logger instance.

    Example:
        >>> from iterconduit.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Starting run")
    """
    if name is None:
        name = "iterconduit"

    if name == "iterconduit" or name.startswith("iterconduit."):
        logger_name = name
    else:
        logger_name = f"iterconduit.{name}"

    if logger_name in _loggers:
        return _loggers[logger_name]

    logger = logging.getLogger(logger_name)

    if not logger.handlers:
        logger.setLevel(_DEFAULT_LEVEL)
        logger.addHandler(_make_handler(_DEFAULT_LEVEL))
        logger.propagate = False

    _loggers[logger_name] = logger
    return logger


def set_log_level(level: int | str) -> None:
    """Set the logging level for all iterconduit loggers.

    Args:
        level: Logging level (``logging.DEBUG``, ``logging.INFO``, etc.) or
            its name as a string (``"DEBUG"``, ``"INFO"``, ...).
    """
    level = _coerce_level(level)

    for logger in _loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)

    global _DEFAULT_LEVEL
    _DEFAULT_LEVEL = level


def configure_logging(
    level: int | str = logging.WARNING,
    format_string: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> None:
    """Configure logging for iterconduit.

    Replaces the handler of every existing iterconduit logger and records the
    settings for loggers created later. Typically called once at application
    startup.

    Args:
        level: Logging level (default: WARNING).
        format_string: Custom format string. If None, uses the default
            ``[LEVEL] name: message`` layout.
        stream: Output stream (default: ``sys.stderr``).

    Example:
        >>> from iterconduit.logging import configure_logging
        >>> import logging
        >>> configure_logging(level=logging.INFO)
    """
    global _DEFAULT_LEVEL, _format_string, _stream

    _DEFAULT_LEVEL = _coerce_level(level)
    _format_string = format_string or _DEFAULT_FORMAT
    _stream = stream

    for logger in _loggers.values():
        logger.setLevel(_DEFAULT_LEVEL)
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        logger.addHandler(_make_handler(_DEFAULT_LEVEL))


__all__ = ["configure_logging", "get_logger", "set_log_level"]
