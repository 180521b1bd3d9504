"""Structured logging for the pipeline, built on structlog.

Console output for local runs, JSON lines for scheduled builds. Every module
logs through get_logger(); adapters run inside source_context() so their
events carry the source name without passing it around.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

# Third-party loggers capped at WARNING unless DEBUG is requested
_NOISY_LOGGERS = ("urllib3", "asyncio", "charset_normalizer")


def setup_logging(json_output: bool = False, log_level: str = "INFO") -> None:
    """Configure structlog and route stdlib logging to the same stream.

    All output goes to stderr; stdout is left for script summaries.

    Args:
        json_output: Emit one JSON object per line instead of console output.
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_output:
        processors += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        processors += [structlog.dev.set_exc_info, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.handlers = [logging.StreamHandler(sys.stderr)]
    root.setLevel(level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(level if level <= logging.DEBUG else logging.WARNING)


@contextmanager
def source_context(source: str) -> Iterator[None]:
    """Tag every event logged inside the block (threads included) with ``source``."""
    with structlog.contextvars.bound_contextvars(source=source):
        yield


def get_logger(name: str) -> structlog.BoundLogger:
    """Return the structlog logger for a module (pass ``__name__``)."""
    return structlog.get_logger(name)
