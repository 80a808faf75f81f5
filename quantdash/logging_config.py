"""
Structured logging configuration.

Library modules log through structlog with ISO timestamps and console
rendering. The CLI keeps its user-facing progress on stdout via print.
"""

import logging
import structlog

_configured = False


def configure_logging(verbose: bool = False) -> None:
    """
    Configure structlog processors once.

    Only the first call takes effect; warnings and above are shown unless
    verbose is set, in which case debug records are shown too.
    """
    global _configured
    if _configured:
        return

    level = logging.DEBUG if verbose else logging.WARNING
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str):
    """Return a structlog logger bound with the given name."""
    return structlog.get_logger(logger_name=name)
