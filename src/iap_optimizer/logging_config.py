"""Structured logging configuration using structlog.

The optimizer is embedded in a host process, so logging is only configured
by entry points (the CLI) or by a host that wants our format. Library
modules just call `structlog.get_logger(__name__)`.

Events are rendered as JSON lines in production and as console output
otherwise, on stderr by default: stdout belongs to the CLI's result.
"""

import logging
import sys
from typing import Optional, TextIO

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Native runtime loggers that are chatty at INFO
RUNTIME_LOGGERS = ("absl", "tensorflow", "ai_edge_litert")


def app_context(app_name: str, app_version: str) -> Processor:
    """Build a processor stamping app name and version on every event."""

    def add_app_context(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("app", app_name)
        event_dict.setdefault("app_version", app_version)
        return event_dict

    return add_app_context


def configure_logging(
    log_level: str = "INFO",
    environment: str = "development",
    *,
    app_name: str = "iap-optimizer",
    app_version: str = "0.1.0",
    stream: Optional[TextIO] = None,
) -> None:
    """Route structlog through stdlib logging with one stream handler.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL (unknown -> INFO)
        environment: "production" selects JSON lines, anything else console output
        app_name: Value of the `app` field
        app_version: Value of the `app_version` field
        stream: Destination (default: sys.stderr)
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    json_output = environment.lower() == "production"

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        app_context(app_name, app_version),
    ]

    renderer: Processor
    if json_output:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=stream is None and sys.stderr.isatty())

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in RUNTIME_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.get_logger(__name__).debug(
        "Logging configured",
        log_level=logging.getLevelName(level),
        renderer="json" if json_output else "console",
    )
