"""Application logging utilities."""

from steamrec.logging.setup import CorrelationIdFilter, configure_logging

__all__ = ["CorrelationIdFilter", "configure_logging"]
