"""Exceptions raised by the seating pipeline."""
from __future__ import annotations


class SeatingError(ValueError):
    """Base class for seating failures. A run that raises persists nothing."""


class ConfigurationError(SeatingError):
    """Raised for invalid run configuration such as a non-positive capacity."""


class DataIntegrityError(SeatingError):
    """Raised when a seating check fails between unit building and placement."""
