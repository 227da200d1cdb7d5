"""cachesolve: matrix inversion with a per-matrix inverse cache."""

from .backend import MLXBackend, NumpyBackend, available_backends, get_backend
from .errors import BackendUnavailable, DimensionMismatch, InversionError, NotInvertible
from .matrix import CachedMatrix, CacheStats
from .solve import cache_solve

__version__ = "0.1.0"

__all__ = [
    "CachedMatrix",
    "CacheStats",
    "cache_solve",
    "get_backend",
    "available_backends",
    "NumpyBackend",
    "MLXBackend",
    "InversionError",
    "NotInvertible",
    "DimensionMismatch",
    "BackendUnavailable",
]
