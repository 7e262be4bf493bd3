# errors.py - exception types raised by the generation core
from __future__ import annotations


class HexworldError(Exception):
    """Base class for all errors raised by :mod:`hexworld`."""


class ConfigurationError(HexworldError, ValueError):
    """Raised when generation inputs are missing or out of range.

    Configuration is checked before any noise is sampled, so a caller that
    catches this never sees a partially built world.
    """


class GenerationCancelled(HexworldError):
    """Raised when a cancellation request is observed between phases."""
