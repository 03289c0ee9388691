"""Self-healing health monitor for the MHB API server."""

__version__ = "0.1.0"
