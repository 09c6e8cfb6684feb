"""structlog configuration for bbservices.

Library modules log through stdlib loggers under ``bbservices``; the
failure and telemetry events are structlog loggers with their own levels:

- ``bbservices.failures``: ``service.failed`` events from the failure log
  plugin. Always WARNING, so failures show up without ``verbose``.
- ``bbservices.telemetry``: ``span.complete`` events for finished root
  spans. DEBUG with ``log_spans``, so span timings can be logged without
  debug output from the rest of the library.

Output goes to stderr as console lines (default) or JSON lines
(``log_json``). The library never calls this on import; applications and
the CLI opt in through :func:`bbservices.bootstrap.configure`.
"""

from __future__ import annotations

import logging
import sys

import structlog

LIBRARY_LOGGER = "bbservices"
FAILURES_LOGGER = "bbservices.failures"
TELEMETRY_LOGGER = "bbservices.telemetry"


def _logger_levels(*, verbose: bool, log_spans: bool) -> dict[str, int]:
    base = logging.DEBUG if verbose else logging.WARNING
    return {
        LIBRARY_LOGGER: base,
        FAILURES_LOGGER: logging.WARNING,
        TELEMETRY_LOGGER: logging.DEBUG if log_spans or verbose else logging.WARNING,
    }


def _build_renderer(log_json: bool) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    log_spans: bool = False,
) -> None:
    """Route bbservices log events to stderr.

    Args:
        verbose: DEBUG for every ``bbservices`` logger (hook errors absorbed
            by ``run``, plugin registration, skipped chain steps).
        log_json: One JSON object per line instead of console output.
        log_spans: Log ``span.complete`` events at DEBUG.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            # Absorbed hook errors are logged with exc_info.
            structlog.processors.format_exc_info,
            _build_renderer(log_json),
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    for name, level in _logger_levels(verbose=verbose, log_spans=log_spans).items():
        logging.getLogger(name).setLevel(level)
