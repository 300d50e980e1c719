"""Structured logging setup using structlog."""

from __future__ import annotations

import logging
import sys

import structlog

from signal_watch.config.schema import LoggingConfig


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _formatter(renderer: structlog.types.Processor) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_processors(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure structured logging for the application.

    ``config.format`` selects the stderr renderer: "console" for humans,
    "json" for machines. A log file, when configured, is always JSON.
    """
    config = config or LoggingConfig()
    # The live status line owns stdout
    stream = sys.stderr
    log_level = getattr(logging, config.level.upper(), logging.WARNING)

    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    if config.format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer(colors=stream.isatty())
    else:
        renderer = structlog.processors.JSONRenderer()

    stream_handler = logging.StreamHandler(stream)
    stream_handler.setFormatter(_formatter(renderer))
    handlers: list[logging.Handler] = [stream_handler]

    if config.file:
        file_handler = logging.FileHandler(config.file)
        file_handler.setFormatter(_formatter(structlog.processors.JSONRenderer()))
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    for handler in handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
