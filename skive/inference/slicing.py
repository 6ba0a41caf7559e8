"""Step-out / step-in slice procedure along a single direction."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
from numpy.random import Generator

from skive.inference.sample import LogLikelihood, Sample

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SliceBounds:
    """Offsets ``(lower, upper)`` along a direction, relative to the current point."""

    lower: float
    upper: float

    @property
    def width(self) -> float:
        return self.upper - self.lower

    def contains(self, distance: float) -> bool:
        return self.lower <= distance <= self.upper

    def shrink(self, distance: float) -> "SliceBounds":
        """Narrow the side of the bracket that ``distance`` falls on."""
        if distance < 0:
            return SliceBounds(distance, self.upper)
        return SliceBounds(self.lower, distance)


@dataclass
class SliceTrace:
    """Records what one slice call did. Passive; never alters the draw."""

    log_height: float = math.nan
    initial_bounds: Optional[SliceBounds] = None
    bounds_history: List[SliceBounds] = field(default_factory=list)
    rejected: List[float] = field(default_factory=list)
    accepted_distance: Optional[float] = None
    expansions: Dict[str, int] = field(default_factory=lambda: {"lower": 0, "upper": 0})
    overflow_reverts: int = 0


def _uniform_open(rng: Generator) -> float:
    """Uniform draw on (0, 1)."""
    u = rng.random()
    while u == 0.0:
        u = rng.random()
    return u


def step_out(
    origin: np.ndarray,
    direction: np.ndarray,
    log_likelihood: LogLikelihood,
    log_height: float,
    distance: float,
    *,
    init_step: float,
    step_base: float,
    upper: bool,
    trace: Optional[SliceTrace] = None,
) -> float:
    """Expand one bound of the slice until it lies outside the slice.

    The k-th expansion moves the bound outward by ``init_step * step_base**k``.
    If the candidate point overflows, the bound falls back to the last distance
    reached before the overflow (the starting offset if no expansion happened).
    """
    sign = 1.0 if upper else -1.0
    increment = float(init_step)
    last_inside = distance
    steps = 0
    while True:
        with np.errstate(over="ignore", invalid="ignore"):
            point = origin + direction * distance
        if not np.all(np.isfinite(point)):
            logger.debug(
                f"Step-out overflow at distance {distance!r} after {steps} steps; "
                f"reverting to {last_inside!r}."
            )
            if trace is not None:
                trace.overflow_reverts += 1
            distance = last_inside
            break
        if not log_height < log_likelihood(point):
            break
        last_inside = distance
        distance = distance + sign * increment
        increment *= step_base
        steps += 1

    if trace is not None:
        trace.expansions["upper" if upper else "lower"] += steps
    return distance


def step_in(
    initial: Sample,
    direction: np.ndarray,
    log_likelihood: LogLikelihood,
    log_height: float,
    bounds: SliceBounds,
    rng: Generator,
    *,
    trace: Optional[SliceTrace] = None,
) -> Sample:
    """Draw uniformly inside ``bounds``, shrinking on rejection, until a point
    with log-likelihood at or above ``log_height`` is found.

    There is no iteration cap: for log-densities whose slice cannot be hit
    (e.g. NaN everywhere off the current point) this does not terminate.
    """
    while True:
        distance = bounds.lower + rng.random() * bounds.width
        candidate = Sample(initial.value + direction * distance, log_likelihood)
        if candidate.log_likelihood >= log_height:
            if trace is not None:
                trace.accepted_distance = distance
            return candidate
        bounds = bounds.shrink(distance)
        if trace is not None:
            trace.rejected.append(distance)
            trace.bounds_history.append(bounds)


def slice_sample(
    initial: Sample,
    direction: np.ndarray,
    log_likelihood: LogLikelihood,
    rng: Generator,
    *,
    init_step: float = 0.1,
    step_base: float = 2.0,
    trace: Optional[SliceTrace] = None,
) -> Sample:
    """Draw the next sample along ``direction`` starting from ``initial``."""
    direction = np.asarray(direction, dtype=float)
    current_ll = initial.log_likelihood
    if math.isnan(current_ll):
        raise ValueError("Log-likelihood is NaN at the current point.")

    # log(u * L(x)) without leaving log space
    log_height = math.log(_uniform_open(rng)) + current_ll

    # Randomly placed initial bracket of width init_step around the current point
    offset = rng.random()
    origin = initial.value
    lower = step_out(
        origin, direction, log_likelihood, log_height, (offset - 1.0) * init_step,
        init_step=init_step, step_base=step_base, upper=False, trace=trace,
    )
    upper = step_out(
        origin, direction, log_likelihood, log_height, offset * init_step,
        init_step=init_step, step_base=step_base, upper=True, trace=trace,
    )
    bounds = SliceBounds(lower, upper)

    if trace is not None:
        trace.log_height = log_height
        trace.initial_bounds = bounds
        trace.bounds_history.append(bounds)

    return step_in(initial, direction, log_likelihood, log_height, bounds, rng, trace=trace)
