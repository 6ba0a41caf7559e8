from __future__ import annotations

import numpy as np
import numpy.testing as npt

from skive.inference.directions import (
    componentwise_directions,
    directions_for_step,
    random_direction,
)


def test_componentwise_directions_are_a_permutation_of_the_basis():
    rng = np.random.default_rng(0)
    dims = 5
    directions = componentwise_directions(dims, rng)

    assert len(directions) == dims
    stacked = np.vstack(directions)
    npt.assert_array_equal(np.sort(stacked.argmax(axis=1)), np.arange(dims))
    npt.assert_array_equal(stacked.sum(axis=1), np.ones(dims))
    npt.assert_array_equal(np.abs(stacked).sum(axis=0), np.ones(dims))


def test_componentwise_order_varies_between_steps():
    rng = np.random.default_rng(1)
    orders = {
        tuple(int(d.argmax()) for d in componentwise_directions(4, rng))
        for _ in range(50)
    }
    assert len(orders) > 1


def test_single_dimension_componentwise_direction_is_the_unit_axis():
    rng = np.random.default_rng(2)
    for _ in range(5):
        (direction,) = componentwise_directions(1, rng)
        npt.assert_array_equal(direction, [1.0])


def test_random_direction_has_unit_norm():
    rng = np.random.default_rng(3)
    for dims in (1, 2, 7):
        direction = random_direction(dims, rng)
        assert direction.shape == (dims,)
        npt.assert_allclose(np.linalg.norm(direction), 1.0, rtol=1e-12)


def test_random_direction_covers_the_sphere_symmetrically():
    rng = np.random.default_rng(4)
    draws = np.vstack([random_direction(3, rng) for _ in range(4000)])
    npt.assert_allclose(draws.mean(axis=0), np.zeros(3), atol=0.05)
    assert np.all(draws.min(axis=0) < 0)


class _DegenerateThenRegular:
    """Generator stand-in returning a zero vector before a usable draw."""

    def __init__(self):
        self.calls = 0

    def standard_normal(self, size):
        self.calls += 1
        if self.calls == 1:
            return np.zeros(size)
        return np.array([3.0, 4.0])


def test_degenerate_direction_draw_is_redrawn():
    rng = _DegenerateThenRegular()
    direction = random_direction(2, rng)
    assert rng.calls == 2
    npt.assert_allclose(direction, [0.6, 0.8])


def test_directions_for_step_counts():
    rng = np.random.default_rng(5)
    assert len(directions_for_step(3, rng, componentwise=True)) == 3
    assert len(directions_for_step(3, rng, componentwise=False)) == 1


def test_directions_are_deterministic_for_a_seed():
    a = directions_for_step(4, np.random.default_rng(9), componentwise=False)
    b = directions_for_step(4, np.random.default_rng(9), componentwise=False)
    npt.assert_array_equal(a[0], b[0])
