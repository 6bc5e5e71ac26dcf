"""Logging configuration for the collector probe.

Implement a declarative configuration pattern that strictly separates
configuration generation from execution. This module provides:

    - `get_logging_config`: Generate a standard Python logging configuration
      dictionary based on probe settings.
    - `configure_structlog_wrapper`: Configure structlog's logger factory and
      processor chain.
    - Context management utilities via `structlog.contextvars` for structured
      metadata injection (e.g., the collector host under test).
"""

from typing import Any

import structlog
from structlog.types import Processor

from collector_probe.config import Settings


# =============================================================================
# CONFIGURATION GENERATORS
# =============================================================================


def get_common_processors() -> list[Processor]:
    """Return the processor chain common to both JSON and console outputs.

    Execute before the final rendering step, handling context merging,
    log level injection, timestamp formatting, and exception serialization.

    Returns:
        list[Processor]: Ordered list of structlog processors.
    """
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def get_logging_config(settings: Settings) -> dict[str, Any]:
    """Generate a logging configuration dictionary for `logging.config.dictConfig`.

    CI runs get JSON output so test logs can be collected and searched; local
    development gets colored console output. Logs go to stderr so that
    stdout stays reserved for response bodies written by the probe CLI.

    Note:
        This is a pure function that does not modify global state.

    Args:
        settings: Probe settings containing LOG_LEVEL and ENVIRONMENT.

    Returns:
        dict[str, Any]: Configuration dictionary compatible with dictConfig.
    """
    log_level = settings.LOG_LEVEL.upper()

    if settings.ENVIRONMENT == "ci":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "()": "structlog.stdlib.ProcessorFormatter",
                "processor": renderer,
                "foreign_pre_chain": get_common_processors(),
            },
        },
        "handlers": {
            "console": {
                "level": log_level,
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {
            "": {
                "handlers": ["console"],
                "level": log_level,
                "propagate": True,
            },
            **{
                lib: {"level": "WARNING", "propagate": False}
                for lib in settings.LOGGING_NOISY_MODULES
            },
        },
    }


def configure_structlog_wrapper(settings: Settings) -> None:
    """Route structlog events through the stdlib handlers built by dictConfig.

    Level filtering happens first so debug events from the query helper cost
    nothing when LOG_LEVEL is above debug.

    Args:
        settings: Probe settings. Currently unused.
    """
    structlog_processors = [
        structlog.stdlib.filter_by_level,
        *get_common_processors(),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]

    structlog.configure(
        processors=structlog_processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


# =============================================================================
# LOGGER RETRIEVAL
# =============================================================================


def get_logger(name: str | None = None) -> Any:
    """Return a structlog logger, named after `name` when given."""
    if name:
        return structlog.get_logger(name)
    return structlog.get_logger()


# =============================================================================
# CONTEXT VARIABLE EXPORTS
# =============================================================================

bind_contextvars = structlog.contextvars.bind_contextvars
clear_contextvars = structlog.contextvars.clear_contextvars
