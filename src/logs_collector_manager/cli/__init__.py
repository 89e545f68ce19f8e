"""Command line interface for logs_collector_manager."""
