"""Logging configuration with request correlation IDs."""

import logging

from steamrec.middleware.correlation import get_correlation_id

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(correlation_id)s] %(name)s: %(message)s"

# Loggers to quiet (too verbose at INFO)
NOISY_LOGGERS = frozenset([
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "asyncpg",
    "httpx",
    "httpcore",
    "asyncio",
    "watchfiles",
    "sentence_transformers",
])


class CorrelationIdFilter(logging.Filter):
    """Stamp each record with the current request's correlation ID ("-" outside requests)."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "correlation_id", None):
            record.correlation_id = get_correlation_id() or "-"
        return True


def configure_logging(level: int = logging.INFO):
    """Configure root logging once at startup."""
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
    )

    correlation_filter = CorrelationIdFilter()
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, CorrelationIdFilter) for f in handler.filters):
            handler.addFilter(correlation_filter)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
