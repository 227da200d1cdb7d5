"""Errors raised by cachesolve backends."""

from __future__ import annotations


class InversionError(ValueError):
    """Base class for matrix inversion failures."""


class NotInvertible(InversionError):
    """Matrix is singular or too ill-conditioned to invert."""


class DimensionMismatch(InversionError):
    """Matrix is not square, or operand shapes do not line up."""


class BackendUnavailable(RuntimeError):
    """Requested inversion backend cannot be loaded in this process."""
