"""Slice-sampling Markov chain with burn-in and thinning."""
from __future__ import annotations

import logging
import math
import numbers
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Iterator, Mapping, Tuple

import numpy as np
from numpy.random import Generator

from skive.inference.directions import directions_for_step
from skive.inference.sample import LogLikelihood, Sample
from skive.inference.slicing import slice_sample
from skive.utils.logging_utils import StepTimer, progress
from skive.utils.seed import SeedLike, make_rng

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Invalid sampler configuration or starting point."""


def _check_count(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}.")
    if value < 0:
        raise ConfigurationError(f"{name} must be non-negative, got {value}.")
    return int(value)


@dataclass(frozen=True)
class SamplerConfig:
    """Settings fixed for the lifetime of a sampler.

    Attributes:
        burnin: internal steps discarded at construction.
        thin: internal steps discarded before each emitted sample.
        componentwise: slice along each axis in random order (True) or once
            along a random unit direction (False).
        init_step: width of the initial bracket and of the first expansion.
        step_base: growth factor of successive expansions, in ``[1, 2]``.
    """

    burnin: int = 0
    thin: int = 0
    componentwise: bool = True
    init_step: float = 0.1
    step_base: float = 2.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "burnin", _check_count("burnin", self.burnin))
        object.__setattr__(self, "thin", _check_count("thin", self.thin))
        object.__setattr__(self, "componentwise", bool(self.componentwise))
        try:
            init_step = float(self.init_step)
            step_base = float(self.step_base)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"init_step and step_base must be real numbers: {exc}") from exc
        if not (math.isfinite(init_step) and init_step > 0):
            raise ConfigurationError(f"init_step must be positive and finite, got {init_step!r}.")
        if not 1.0 <= step_base <= 2.0:
            raise ConfigurationError(f"step_base must lie in [1, 2], got {step_base!r}.")
        object.__setattr__(self, "init_step", init_step)
        object.__setattr__(self, "step_base", step_base)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any] | None) -> "SamplerConfig":
        """Build a config from a dict such as the ``sampler`` section of a run config."""
        mapping = dict(mapping or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(mapping) - known)
        if unknown:
            raise ConfigurationError(f"Unknown sampler option(s): {', '.join(unknown)}")
        return cls(**{k: v for k, v in mapping.items() if v is not None})


class SamplerState(str, Enum):
    UNINITIALIZED = "uninitialized"
    BURNING_IN = "burning_in"
    READY = "ready"
    EMITTING = "emitting"


def advance(
    current: Sample,
    log_likelihood: LogLikelihood,
    config: SamplerConfig,
    rng: Generator,
) -> Sample:
    """Perform one internal sampling step and return the new current sample.

    Componentwise mode threads the sample through one slice per axis, in a
    fresh random order; composite mode slices once along a random direction.
    """
    for direction in directions_for_step(current.dims, rng, config.componentwise):
        current = slice_sample(
            current,
            direction,
            log_likelihood,
            rng,
            init_step=config.init_step,
            step_base=config.step_base,
        )
    return current


class SliceSampler(Iterator[Sample]):
    """Infinite iterator of slice samples from an unnormalized log-density.

    Construction performs the burn-in; each ``next()`` performs ``thin + 1``
    internal steps and returns the last one. The sequence never ends.

    Not safe for concurrent use: run independent chains as independent
    samplers, each with its own generator (see ``skive.utils.seed.spawn_rngs``).
    """

    def __init__(
        self,
        log_likelihood: LogLikelihood,
        init,
        *,
        burnin: int = 0,
        thin: int = 0,
        componentwise: bool = True,
        init_step: float = 0.1,
        step_base: float = 2.0,
        rng: SeedLike = None,
        show_progress: bool = False,
    ) -> None:
        self.state = SamplerState.UNINITIALIZED
        self.config = SamplerConfig(
            burnin=burnin,
            thin=thin,
            componentwise=componentwise,
            init_step=init_step,
            step_base=step_base,
        )
        if not callable(log_likelihood):
            raise ConfigurationError("log_likelihood must be callable.")
        try:
            start = np.array(init, dtype=float)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"init must be a real vector: {exc}") from exc
        if start.ndim != 1 or start.size == 0:
            raise ConfigurationError(f"init must be a non-empty 1-D vector, got shape {start.shape}.")
        if not np.all(np.isfinite(start)):
            raise ConfigurationError("init must contain only finite values.")

        self.log_likelihood = log_likelihood
        self.dims = int(start.shape[0])
        self.rng = make_rng(rng)
        self.steps_taken = 0
        self._current = Sample(start, log_likelihood)

        self.state = SamplerState.BURNING_IN
        burnin_steps = progress(
            range(self.config.burnin), total=self.config.burnin, desc="Burn-in", enabled=show_progress
        )
        with StepTimer("burn-in", logger=logger) as timer:
            for _ in burnin_steps:
                self._step()
            timer.steps = self.steps_taken
        self.state = SamplerState.READY

    @classmethod
    def from_config(
        cls,
        log_likelihood: LogLikelihood,
        init,
        config: SamplerConfig,
        *,
        rng: SeedLike = None,
        show_progress: bool = False,
    ) -> "SliceSampler":
        return cls(
            log_likelihood,
            init,
            burnin=config.burnin,
            thin=config.thin,
            componentwise=config.componentwise,
            init_step=config.init_step,
            step_base=config.step_base,
            rng=rng,
            show_progress=show_progress,
        )

    @property
    def current(self) -> Sample:
        """The last sample produced (the starting point before any step)."""
        return self._current

    def _step(self) -> Sample:
        self._current = advance(self._current, self.log_likelihood, self.config, self.rng)
        self.steps_taken += 1
        return self._current

    def __iter__(self) -> "SliceSampler":
        return self

    def __next__(self) -> Sample:
        self.state = SamplerState.EMITTING
        for _ in range(self.config.thin + 1):
            sample = self._step()
        return sample

    def draw(self, n: int, *, show_progress: bool = False) -> Tuple[np.ndarray, np.ndarray]:
        """Pull ``n`` samples; return values ``(n, dims)`` and log-likelihoods ``(n,)``."""
        n = _check_count("n", n)
        values = np.empty((n, self.dims), dtype=float)
        log_likelihoods = np.empty(n, dtype=float)
        for i in progress(range(n), total=n, desc="Sampling", enabled=show_progress):
            sample = next(self)
            values[i] = sample.value
            log_likelihoods[i] = sample.log_likelihood
        return values, log_likelihoods
