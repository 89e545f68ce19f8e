"""Logging configuration for logs_collector_manager."""

from logs_collector_manager.logging.config import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
