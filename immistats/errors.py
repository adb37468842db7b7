"""
Error types raised by the statistics core.
"""
from __future__ import annotations


class StatsError(RuntimeError):
    """Base class for statistics core failures."""


class DataUnavailable(StatsError):
    """The snapshot file is missing. Retryable once the file is published."""


class DataCorrupt(StatsError):
    """The snapshot file exists but cannot be parsed. Fatal until the file is fixed."""


class InvalidInput(StatsError, ValueError):
    """A filter or estimation request value failed validation."""
