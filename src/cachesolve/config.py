"""Environment-driven defaults.

Explicit arguments always win; otherwise these env vars are consulted:
  - CACHESOLVE_BACKEND (default "numpy")
  - CACHESOLVE_RCOND   (unset means no conditioning check)
"""

from __future__ import annotations

import os

_ENV_BACKEND = "CACHESOLVE_BACKEND"
_ENV_RCOND = "CACHESOLVE_RCOND"

DEFAULT_BACKEND = "numpy"


def _parse_float_env(name: str) -> float | None:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid {name}={raw!r}; expected float.") from exc


def backend_name(name: str | None = None) -> str:
    """Return the backend name to use, lower-cased."""
    if name is None:
        name = os.environ.get(_ENV_BACKEND, "").strip() or DEFAULT_BACKEND
    return name.strip().lower()


def rcond(value: float | None = None) -> float | None:
    """Return the reciprocal-condition tolerance, or None to skip the check."""
    tol = value
    if tol is None:
        tol = _parse_float_env(_ENV_RCOND)
    if tol is None:
        return None
    if not 0.0 <= tol < 1.0:
        raise ValueError(f"rcond must be in [0, 1) (got {tol}).")
    return float(tol)
