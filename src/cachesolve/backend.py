"""Linear-algebra backends that compute matrix inverses.

Each backend exposes ``solve(a, b=None, *, rcond=None)``: with only ``a`` it
returns the inverse of ``a``; with a right-hand side ``b`` it returns ``x``
such that ``a @ x == b``.  Results always come back as numpy arrays so the
cache layer never has to care which backend produced them.

Failures are normalized to :class:`~cachesolve.errors.NotInvertible` and
:class:`~cachesolve.errors.DimensionMismatch`.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import numpy as np

from . import config
from .errors import BackendUnavailable, DimensionMismatch, NotInvertible

logger = logging.getLogger("cachesolve.backend")

# ---------------------------------------------------------------------------
# Shared validation
# ---------------------------------------------------------------------------


def _as_square(a: Any) -> np.ndarray:
    arr = np.asarray(a)
    if arr.ndim != 2:
        raise DimensionMismatch(f"expected a 2-D matrix, got shape {arr.shape}")
    if arr.shape[0] != arr.shape[1]:
        raise DimensionMismatch(f"matrix is not square: shape {arr.shape}")
    return arr


def _check_rhs(a: np.ndarray, b: Any) -> np.ndarray:
    rhs = np.asarray(b)
    if rhs.ndim not in (1, 2) or rhs.shape[0] != a.shape[0]:
        raise DimensionMismatch(
            f"right-hand side shape {rhs.shape} does not match matrix shape {a.shape}"
        )
    return rhs


def reciprocal_condition(a: np.ndarray) -> float:
    """Return ``1 / cond(a)`` in the 2-norm; 0.0 for a singular matrix."""
    if a.size == 0:
        return 1.0
    # Promote ints to float64; keep complex and float dtypes as they are.
    s = np.linalg.svd(np.asarray(a, dtype=np.result_type(a, np.float64)), compute_uv=False)
    if s[0] == 0.0:
        return 0.0
    return float(s[-1] / s[0])


def _check_conditioning(a: np.ndarray, rcond: float | None) -> None:
    if rcond is None:
        return
    if not np.all(np.isfinite(a)):
        raise NotInvertible("matrix contains non-finite values")
    rc = reciprocal_condition(a)
    if rc < rcond:
        raise NotInvertible(
            f"matrix is ill-conditioned: reciprocal condition {rc:.3e} < rcond {rcond:.3e}"
        )


def _check_finite(out: np.ndarray) -> np.ndarray:
    if not np.all(np.isfinite(out)):
        raise NotInvertible("inversion produced non-finite values (singular matrix)")
    return out


# ---------------------------------------------------------------------------
# NumpyBackend -- LAPACK via numpy.linalg
# ---------------------------------------------------------------------------


class NumpyBackend:
    """Backend built on ``numpy.linalg``; always available."""

    name = "numpy"

    def __init__(self, rcond: float | None = None) -> None:
        self.rcond = rcond

    def is_available(self) -> bool:
        return True

    def solve(self, a: Any, b: Any = None, *, rcond: float | None = None) -> np.ndarray:
        arr = _as_square(a)
        rhs = None if b is None else _check_rhs(arr, b)
        _check_conditioning(arr, self.rcond if rcond is None else rcond)
        try:
            if rhs is None:
                out = np.linalg.inv(arr)
            else:
                out = np.linalg.solve(arr, rhs)
        except np.linalg.LinAlgError as exc:
            raise NotInvertible(f"singular matrix: {exc}") from exc
        return _check_finite(out)


def _load_mlx() -> tuple[Any, Exception | None]:
    """Import ``mlx.core`` once per backend; return (module, import error)."""
    try:
        import mlx.core as mx
    except (ImportError, OSError) as exc:
        return None, exc
    return mx, None


# ---------------------------------------------------------------------------
# MLXBackend -- mlx.core.linalg on the CPU stream
# ---------------------------------------------------------------------------


class MLXBackend:
    """Backend that delegates to ``mlx.core.linalg``.

    MLX only implements ``inv``/``solve`` on the CPU device, so every call is
    scheduled on ``mx.cpu`` unless a stream is passed explicitly.
    """

    name = "mlx"

    def __init__(self, rcond: float | None = None) -> None:
        self.rcond = rcond
        self._mx, self._import_error = _load_mlx()

    def is_available(self) -> bool:
        return self._mx is not None

    def solve(
        self,
        a: Any,
        b: Any = None,
        *,
        rcond: float | None = None,
        stream: Any = None,
    ) -> np.ndarray:
        if self._mx is None:
            raise BackendUnavailable(f"MLX is not available: {self._import_error}")
        mx = self._mx
        arr = _as_square(np.array(a, dtype=np.float32))
        _check_conditioning(arr, self.rcond if rcond is None else rcond)
        rhs = None if b is None else _check_rhs(arr, np.array(b, dtype=np.float32))
        if stream is None:
            stream = mx.cpu
        try:
            if rhs is None:
                out = mx.linalg.inv(mx.array(arr), stream=stream)
            else:
                out = mx.linalg.solve(mx.array(arr), mx.array(rhs), stream=stream)
            mx.eval(out)
        except (ValueError, RuntimeError) as exc:
            raise NotInvertible(f"singular matrix: {exc}") from exc
        return _check_finite(np.array(out))


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

_BACKENDS: dict[str, type] = {
    NumpyBackend.name: NumpyBackend,
    MLXBackend.name: MLXBackend,
}


def get_backend(name: str | None = None, *, rcond: float | None = None) -> Any:
    """Instantiate a backend by name, falling back to ``CACHESOLVE_BACKEND``."""
    resolved = config.backend_name(name)
    cls = _BACKENDS.get(resolved)
    if cls is None:
        raise ValueError(
            f"Unknown backend {resolved!r}; expected one of {sorted(_BACKENDS)}."
        )
    backend = cls(rcond=config.rcond(rcond))
    if not backend.is_available():
        raise BackendUnavailable(f"Backend {resolved!r} is not available.")
    logger.debug("[cachesolve] using %s backend (rcond=%s)", resolved, backend.rcond)
    return backend


def available_backends() -> list[str]:
    """Names of the backends that can run in this process."""
    return [name for name, cls in _BACKENDS.items() if cls().is_available()]


def timed_solve(backend: Any, a: Any, *args: Any, **kwargs: Any) -> np.ndarray:
    """Run ``backend`` (object with ``solve`` or plain callable) and log timing."""
    fn = getattr(backend, "solve", backend)
    t0 = time.perf_counter()
    out = fn(a, *args, **kwargs)
    elapsed_ms = (time.perf_counter() - t0) * 1000.0
    logger.debug(
        "[cachesolve] %s solved %s in %.3f ms",
        getattr(backend, "name", getattr(backend, "__name__", "backend")),
        np.shape(a),
        elapsed_ms,
    )
    return out
