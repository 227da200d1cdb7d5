"""Tests for the cache_solve compute-or-reuse protocol."""

from __future__ import annotations

import logging

import numpy as np
import pytest

from cachesolve import CachedMatrix, NotInvertible, NumpyBackend, cache_solve


class _CountingBackend:
    """Wraps NumpyBackend and counts how often it is asked to invert."""

    name = "counting"

    def __init__(self) -> None:
        self.calls = 0
        self.last_args: tuple = ()
        self.last_kwargs: dict = {}
        self._inner = NumpyBackend()

    def solve(self, a, *args, **kwargs):
        self.calls += 1
        self.last_args = args
        self.last_kwargs = kwargs
        return self._inner.solve(a, *args, **kwargs)


def test_second_call_is_served_from_cache():
    backend = _CountingBackend()
    cm = CachedMatrix([[4.0, 7.0], [2.0, 6.0]])
    first = cache_solve(cm, backend=backend)
    second = cache_solve(cm, backend=backend)
    assert backend.calls == 1
    assert second is first
    np.testing.assert_array_equal(first, second)
    assert cm.stats.hits == 1
    assert cm.stats.misses == 1


def test_inverse_times_matrix_is_identity():
    rng = np.random.default_rng(42)
    m = rng.random((6, 6)) + 6.0 * np.eye(6)
    inv = cache_solve(CachedMatrix(m))
    np.testing.assert_allclose(m @ inv, np.eye(6), atol=1e-10)


def test_set_invalidates_and_forces_recompute():
    backend = _CountingBackend()
    cm = CachedMatrix([[2.0, 0.0], [0.0, 2.0]])
    cache_solve(cm, backend=backend)
    cm.set([[2.0, 0.0], [0.0, 2.0]])
    assert cm.get_inverse() is None
    cache_solve(cm, backend=backend)
    assert backend.calls == 2


def test_singular_matrix_is_not_cached():
    backend = _CountingBackend()
    cm = CachedMatrix([[1.0, 2.0], [2.0, 4.0]])
    with pytest.raises(NotInvertible):
        cache_solve(cm, backend=backend)
    assert cm.get_inverse() is None
    with pytest.raises(NotInvertible):
        cache_solve(cm, backend=backend)
    assert backend.calls == 2


def test_failure_propagates_unchanged():
    class Boom(Exception):
        pass

    def inverter(a):
        raise Boom("no")

    cm = CachedMatrix(np.eye(2))
    with pytest.raises(Boom):
        cache_solve(cm, backend=inverter)
    assert not cm.has_inverse


def test_plain_callable_backend():
    cm = CachedMatrix(np.diag([4.0, 5.0]))
    out = cache_solve(cm, backend=np.linalg.inv)
    np.testing.assert_allclose(out, np.diag([0.25, 0.2]))


def test_extra_arguments_pass_through():
    backend = _CountingBackend()
    a = np.array([[3.0, 1.0], [1.0, 2.0]])
    b = np.array([9.0, 8.0])
    x = cache_solve(CachedMatrix(a), b, backend=backend, rcond=1e-12)
    assert backend.last_args[0] is b
    assert backend.last_kwargs == {"rcond": 1e-12}
    np.testing.assert_allclose(a @ x, b)


def test_cache_hit_logs_notice(caplog):
    cm = CachedMatrix(np.eye(3))
    with caplog.at_level(logging.INFO, logger="cachesolve.solve"):
        cache_solve(cm)
        assert "getting cached data" not in caplog.text
        cache_solve(cm)
    assert "getting cached data" in caplog.text


def test_independent_instances():
    backend = _CountingBackend()
    m = [[2.0, 1.0], [1.0, 2.0]]
    a = CachedMatrix(m)
    b = CachedMatrix(m)
    cache_solve(a, backend=backend)
    cache_solve(b, backend=backend)
    a.set([[1.0, 0.0], [0.0, 1.0]])
    assert a.get_inverse() is None
    assert b.has_inverse
    assert backend.calls == 2


def test_scenario_diagonal_then_reset():
    backend = _CountingBackend()
    cx = CachedMatrix([[2, 0], [0, 2]])

    out = cache_solve(cx, backend=backend)
    np.testing.assert_allclose(out, [[0.5, 0.0], [0.0, 0.5]])
    assert cx.get_inverse().shape == cx.get().shape
    assert backend.calls == 1

    again = cache_solve(cx, backend=backend)
    np.testing.assert_array_equal(again, out)
    assert backend.calls == 1

    cx.set([[1, 2], [3, 4]])
    assert cx.get_inverse() is None

    out = cache_solve(cx, backend=backend)
    np.testing.assert_allclose(out, [[-2.0, 1.0], [1.5, -0.5]])
    assert cx.get_inverse().shape == cx.get().shape
    assert backend.calls == 2
