"""Structured logging setup for the influence graph cache.

One shared processor chain (context vars, log level, timestamps, stack
info) feeds either a coloured ConsoleRenderer for local work or a
JSONRenderer for production.  The renderer follows ``app_env`` as loaded
into :class:`~src.config.settings.Settings`.

Standard-library ``logging`` is bridged through the same formatter so
``aiosqlite`` records share the output shape.  aiosqlite emits one DEBUG
record per statement it runs on its worker thread; that logger is held at
INFO or above.
"""

import logging
import sys

import structlog

_DRIVER_LOGGERS = ("aiosqlite",)


def configure_logging(
    log_level: str = "INFO",
    app_env: str = "development",
    json_output: bool = False,
) -> structlog.BoundLogger:
    """Configure structlog and the stdlib bridge.

    Args:
        log_level: Logging level string (DEBUG, INFO, WARNING, ERROR).
        app_env: Deployment environment; ``production`` selects JSON output.
        json_output: Force JSON output regardless of ``app_env``.

    Returns:
        A configured structlog BoundLogger.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    use_json = json_output or app_env == "production"

    # Runs for both renderers; contextvars first so bound request context
    # is visible to everything after it.
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,  # exc_info on logger.exception()
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if use_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[*shared_processors, renderer],
        # Drops records below the level before any processor runs.
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Stdlib bridge.
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *shared_processors,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()  # avoid duplicate lines on reconfigure
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _DRIVER_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a named structlog logger, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)
