"""Tandem error hierarchy.

All tandem-specific errors inherit from TandemError for easy catching.
"""


class TandemError(Exception):
    """Base error for all tandem operations."""


class ConfigError(TandemError):
    """Invalid or missing configuration."""


class SyncError(TandemError):
    """Error in the synchronization engine (records, broadcasts)."""


class CascadeError(SyncError):
    """A broadcast cascade nested deeper than ``max_cascade_depth``."""


class CacheError(TandemError):
    """Misuse of the canonical record cache."""
