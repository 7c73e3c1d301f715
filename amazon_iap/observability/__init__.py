"""
Observability module - Structured logging.
"""

from amazon_iap.observability.logging import get_logger, log_context, setup_logging

__all__ = [
    "get_logger",
    "log_context",
    "setup_logging",
]
