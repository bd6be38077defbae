"""Structured logging for the D&D Beyond character converter.

Every engine logs through structlog with the character id and output
format bound for the duration of one conversion, so a run over several
characters can be split back apart. CharacterConverter calls
configure_from_settings() when it is created; embedding applications that
own logging turn that off with ``DDB_CONVERTER_MANAGE_LOGGING=false``.

Example:
    >>> from ddb_converter.core.logging import configure_logging, get_logger
    >>> configure_logging("DEBUG", json_format=True)
    >>> get_logger(__name__).info("Inventory processed", total_items=42)
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any, TextIO

import structlog
from structlog.types import Processor


if TYPE_CHECKING:
    from structlog.types import EventDict, WrappedLogger

    from ddb_converter.core.config import Settings


# Loggers of the HTTP stack used by the character fetcher
NOISY_LOGGERS = ("urllib3", "requests")

_active: tuple[Any, ...] | None = None


class AppContext:
    """Processor stamping the application name and version on each event."""

    def __init__(self, app_name: str, app_version: str | None = None) -> None:
        self.app_name = app_name
        self.app_version = app_version

    def __call__(
        self,
        logger: WrappedLogger,
        method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        event_dict.setdefault("app", self.app_name)
        if self.app_version:
            event_dict.setdefault("app_version", self.app_version)
        return event_dict


def configure_logging(
    level: str = "INFO",
    *,
    json_format: bool = False,
    app_name: str = "ddb_converter",
    app_version: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """Configure structlog and the HTTP libraries' stdlib loggers.

    Calling again with the same arguments is a no-op, so every converter
    instance may call it.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL; unknown names fall
            back to INFO.
        json_format: Render one JSON object per event instead of console
            lines.
        app_name: Value of the ``app`` key on every event.
        app_version: Value of the ``app_version`` key, omitted when empty.
        stream: Where events are written; standard error when omitted.
    """
    global _active

    output = stream or sys.stderr
    key = (level.upper(), json_format, app_name, app_version, output)
    if key == _active:
        return

    log_level = getattr(logging, level.upper(), logging.INFO)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        AppContext(app_name, app_version),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if json_format:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=output.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=False,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    _active = key


def configure_from_settings(settings: Settings) -> None:
    """Apply the logging fields of Settings.

    Debug mode forces the DEBUG level regardless of ``log_level``.

    Args:
        settings: Application settings.
    """
    configure_logging(
        "DEBUG" if settings.debug else settings.log_level,
        json_format=settings.json_logs,
        app_name=settings.app_name,
        app_version=settings.app_version,
    )


def reset_logging() -> None:
    """Restore structlog's defaults and forget the active configuration."""
    global _active
    structlog.reset_defaults()
    _active = None


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a logger, typically ``get_logger(__name__)``."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind values to every event logged until clear_context().

    The converter binds the character id and output format here for the
    duration of one conversion.

    Args:
        **kwargs: Key-value pairs to bind.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Drop values bound by bind_context()."""
    structlog.contextvars.clear_contextvars()


__all__ = [
    "AppContext",
    "configure_logging",
    "configure_from_settings",
    "reset_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
