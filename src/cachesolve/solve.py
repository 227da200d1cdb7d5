"""Compute-or-reuse protocol for :class:`~cachesolve.matrix.CachedMatrix`."""

from __future__ import annotations

import logging
from typing import Any

import numpy as np

from .backend import get_backend, timed_solve
from .matrix import CachedMatrix

logger = logging.getLogger("cachesolve.solve")


def cache_solve(
    cached: CachedMatrix,
    *args: Any,
    backend: Any = None,
    **kwargs: Any,
) -> np.ndarray:
    """Return the inverse of ``cached``, computing it only when not cached.

    Extra positional and keyword arguments go to the backend's ``solve``
    untouched (e.g. a right-hand side ``b`` or ``rcond``).  ``backend`` is a
    backend object or a plain callable; ``None`` selects the configured
    default via :func:`~cachesolve.backend.get_backend`.

    Backend errors propagate and leave the cache empty, so only successful
    inversions are ever stored.
    """
    with cached.lock:
        stored = cached.get_inverse()
        if stored is not None:
            logger.info("[cachesolve] getting cached data")
            cached.stats.hits += 1
            return stored

        cached.stats.misses += 1
        if backend is None:
            backend = get_backend()
        result = timed_solve(backend, cached.get(), *args, **kwargs)
        cached.set_inverse(result)
        return cached.get_inverse()
