"""Fitness tracker REST API server."""

__version__ = "2.0.0"
