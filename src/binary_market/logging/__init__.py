"""Structured logging."""

from binary_market.logging.setup import bind_market_context, get_logger, setup_logging

__all__ = ["bind_market_context", "get_logger", "setup_logging"]
