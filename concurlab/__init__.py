"""Caching HTTP proxy with subscriber fan-out, and thread-synchronisation experiments."""

__version__ = "0.1.0"