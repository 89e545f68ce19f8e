"""Version information for logs_collector_manager."""

__version__ = "0.1.0"
