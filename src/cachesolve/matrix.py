"""A matrix that remembers its inverse.

``CachedMatrix`` holds a value and, once computed, its inverse.  Replacing the
value with :meth:`CachedMatrix.set` always drops the cached inverse; no
equality check is made against the previous value.  The inverse is stored
as-is by :meth:`CachedMatrix.set_inverse`; keeping it correct is the job of
:func:`cachesolve.solve.cache_solve`.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any

import numpy as np


@dataclass
class CacheStats:
    """Per-instance cache counters.

    Attributes:
        hits: Lookups served from the cached inverse.
        misses: Lookups that had to call the backend (including failed ones).
        invalidations: Calls to :meth:`CachedMatrix.set`.
    """

    hits: int = 0
    misses: int = 0
    invalidations: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

    def reset(self) -> None:
        self.hits = 0
        self.misses = 0
        self.invalidations = 0


def _owned(value: Any) -> np.ndarray:
    # Private read-only copy; callers keep their own buffer.
    arr = np.array(value)
    arr.setflags(write=False)
    return arr


class CachedMatrix:
    """Matrix value plus an optional cached inverse.

    The pair is guarded by ``lock`` (re-entrant), so a ``set`` racing with
    :func:`~cachesolve.solve.cache_solve` can never leave a stale inverse
    paired with a new value.
    """

    def __init__(self, value: Any = None) -> None:
        if value is None:
            value = np.empty((0, 0))
        self.lock = threading.RLock()
        self.stats = CacheStats()
        self._value = _owned(value)
        self._inverse: np.ndarray | None = None

    def set(self, value: Any) -> None:
        with self.lock:
            self._value = _owned(value)
            self._inverse = None
            self.stats.invalidations += 1

    def get(self) -> np.ndarray:
        return self._value

    def set_inverse(self, inverse: Any) -> None:
        with self.lock:
            self._inverse = _owned(inverse)

    def get_inverse(self) -> np.ndarray | None:
        return self._inverse

    @property
    def has_inverse(self) -> bool:
        return self._inverse is not None

    @property
    def shape(self) -> tuple[int, ...]:
        return self._value.shape

    def __repr__(self) -> str:
        state = "cached" if self.has_inverse else "empty"
        return f"CachedMatrix(shape={self.shape}, inverse={state})"
