from __future__ import annotations

import math

import numpy as np
import numpy.testing as npt
import pytest

from skive.inference.sample import Sample
from skive.inference.slicing import SliceBounds, SliceTrace, slice_sample, step_in, step_out


def _neg_sq_norm(x):
    return -float(np.dot(x, x))


def _box(x):
    return 0.0 if np.all(np.abs(x) <= 1.0) else -math.inf


class _Recorder:
    """Flat density on |x| < radius that remembers where it was evaluated."""

    def __init__(self, radius):
        self.radius = radius
        self.points = []

    def __call__(self, x):
        self.points.append(float(x[0]))
        return 0.0 if abs(x[0]) < self.radius else -math.inf


@pytest.mark.parametrize("upper, start", [(True, 0.05), (False, -0.05)])
def test_step_out_linear_schedule(upper, start):
    ll = _Recorder(radius=1.0)
    trace = SliceTrace()
    bound = step_out(
        np.zeros(1), np.ones(1), ll, -1.0, start,
        init_step=0.1, step_base=1.0, upper=upper, trace=trace,
    )

    steps = np.abs(np.diff(ll.points))
    npt.assert_allclose(steps, np.full(steps.shape, 0.1), rtol=1e-9)
    # n steps cover a distance of init_step * n
    npt.assert_allclose(abs(ll.points[-1] - start), 0.1 * len(steps), rtol=1e-9)
    assert bound == ll.points[-1]
    assert abs(bound) >= 1.0
    assert trace.expansions["upper" if upper else "lower"] == len(steps)


def test_step_out_geometric_schedule():
    ll = _Recorder(radius=5.0)
    bound = step_out(
        np.zeros(1), np.ones(1), ll, -1.0, 0.05,
        init_step=0.1, step_base=2.0, upper=True,
    )

    steps = np.diff(ll.points)
    npt.assert_allclose(steps, 0.1 * 2.0 ** np.arange(steps.size), rtol=1e-9)
    assert bound >= 5.0
    assert ll.points[-2] < 5.0


def test_step_out_stops_when_log_likelihood_equals_height():
    calls = []

    def flat(x):
        calls.append(float(x[0]))
        return -1.0

    bound = step_out(np.zeros(1), np.ones(1), flat, -1.0, 0.3, init_step=0.1, step_base=2.0, upper=True)
    assert bound == 0.3
    assert calls == [0.3]


def test_step_out_reverts_on_overflow():
    ll = _Recorder(radius=math.inf)
    trace = SliceTrace()
    bound = step_out(
        np.zeros(1), np.ones(1), ll, -1.0, 0.5,
        init_step=1.0, step_base=2.0, upper=True, trace=trace,
    )
    # the overflowing distance is never handed to the log-likelihood
    assert all(math.isfinite(p) for p in ll.points)
    assert bound == ll.points[-1]
    assert math.isinf(ll.points[-1] + 2.0 ** (len(ll.points) - 1))
    assert trace.overflow_reverts == 1
    assert trace.expansions["upper"] == len(ll.points)


def test_step_out_overflow_before_any_expansion_keeps_starting_offset():
    trace = SliceTrace()
    origin = np.array([1.7e308])
    bound = step_out(
        origin, np.ones(1), lambda x: 0.0, -1.0, 1e308,
        init_step=1.0, step_base=2.0, upper=True, trace=trace,
    )
    assert bound == 1e308
    assert trace.overflow_reverts == 1
    assert trace.expansions["upper"] == 0


def test_slice_bounds_shrink_by_sign():
    bounds = SliceBounds(-2.0, 3.0)
    assert bounds.shrink(-0.5) == SliceBounds(-0.5, 3.0)
    assert bounds.shrink(1.0) == SliceBounds(-2.0, 1.0)
    assert bounds.shrink(0.0) == SliceBounds(-2.0, 0.0)
    assert bounds.width == 5.0
    assert bounds.contains(0.0) and not bounds.contains(3.5)


def test_bounds_bracket_the_start_after_step_out():
    rng = np.random.default_rng(11)
    initial = Sample(np.array([0.3, -0.2]), _neg_sq_norm)
    for _ in range(200):
        trace = SliceTrace()
        direction = rng.standard_normal(2)
        direction /= np.linalg.norm(direction)
        slice_sample(initial, direction, _neg_sq_norm, rng, init_step=0.7, step_base=1.5, trace=trace)
        assert trace.initial_bounds.lower <= 0.0 <= trace.initial_bounds.upper


def test_step_in_shrinks_monotonically_and_accepts_inside_current_bounds():
    rng = np.random.default_rng(12)
    initial = Sample(np.array([0.0]), _neg_sq_norm)
    direction = np.ones(1)
    saw_rejection = False
    for _ in range(300):
        trace = SliceTrace()
        result = slice_sample(initial, direction, _neg_sq_norm, rng, init_step=4.0, step_base=2.0, trace=trace)

        lowers = np.array([b.lower for b in trace.bounds_history])
        uppers = np.array([b.upper for b in trace.bounds_history])
        assert np.all(np.diff(lowers) >= 0.0)
        assert np.all(np.diff(uppers) <= 0.0)
        assert trace.bounds_history[-1].contains(trace.accepted_distance)
        assert result.log_likelihood >= trace.log_height
        npt.assert_allclose(result.value, initial.value + direction * trace.accepted_distance)
        saw_rejection = saw_rejection or bool(trace.rejected)
    assert saw_rejection


def test_step_in_shrinks_on_the_rejected_side():
    rng = np.random.default_rng(13)
    initial = Sample(np.array([0.0]), _box)
    trace = SliceTrace()
    result = step_in(initial, np.ones(1), _box, -0.5, SliceBounds(-50.0, 50.0), rng, trace=trace)

    assert -1.0 <= result.value[0] <= 1.0
    for rejected, bounds in zip(trace.rejected, trace.bounds_history):
        if rejected < 0:
            assert bounds.lower == rejected
        else:
            assert bounds.upper == rejected


def test_bounded_support_slices_stay_inside():
    rng = np.random.default_rng(14)
    current = Sample(np.array([0.0]), _box)
    for _ in range(500):
        current = slice_sample(current, np.ones(1), _box, rng, init_step=0.1, step_base=2.0)
        assert -1.0 <= current.value[0] <= 1.0
        assert current.log_likelihood == 0.0


def test_slice_sample_is_deterministic_for_a_seed():
    initial = Sample(np.array([0.2, 0.4]), _neg_sq_norm)
    direction = np.array([0.6, 0.8])
    a = slice_sample(initial, direction, _neg_sq_norm, np.random.default_rng(5))
    b = slice_sample(initial, direction, _neg_sq_norm, np.random.default_rng(5))
    npt.assert_array_equal(a.value, b.value)


def test_slice_sample_rejects_nan_start():
    initial = Sample(np.zeros(1), math.nan)
    with pytest.raises(ValueError):
        slice_sample(initial, np.ones(1), _neg_sq_norm, np.random.default_rng(0))
