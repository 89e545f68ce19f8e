"""Logs collector manager.

Provisions, cleans and tears down a node-level logs collector daemon
on a Kubernetes cluster.
"""

from logs_collector_manager.__version__ import __version__

__all__ = ["__version__"]
