"""Structured logging module using structlog."""

from .structured_logger import bind_context, clear_context, configure_logging

__all__ = ["configure_logging", "bind_context", "clear_context"]
