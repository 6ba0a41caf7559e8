"""Registry of built-in log-densities for runs driven by config files.

Each builder takes the ``target`` section of a run config (minus ``name``) and
returns a :class:`Target`. Log-densities are unnormalized where that is
simpler, and return ``-inf`` outside their support instead of raising.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

import numpy as np
from scipy import stats

from skive.inference.sample import LogLikelihood


class TargetError(KeyError):
    """Unknown target name or unusable target parameters."""


@dataclass(frozen=True)
class Target:
    name: str
    log_likelihood: LogLikelihood
    dims: Optional[int] = None


REGISTRY: Dict[str, Callable[[Dict[str, Any]], Target]] = {}


def register(name: str) -> Callable[[Callable[[Dict[str, Any]], Target]], Callable[[Dict[str, Any]], Target]]:
    """Register a target builder via @register('target_name')."""

    def deco(fn: Callable[[Dict[str, Any]], Target]) -> Callable[[Dict[str, Any]], Target]:
        key = name.strip().lower()
        if key in REGISTRY:
            raise ValueError(f"Target '{key}' already registered.")
        REGISTRY[key] = fn
        return fn

    return deco


def available_targets() -> list[str]:
    return sorted(REGISTRY)


def build_target(target_cfg: Mapping[str, Any]) -> Target:
    """Build a target from ``{"name": ..., **params}``."""
    params = dict(target_cfg)
    name = str(params.pop("name", "")).strip().lower()
    if name not in REGISTRY:
        raise TargetError(f"Unknown target '{name}'. Available: {', '.join(available_targets())}")
    try:
        return REGISTRY[name](params)
    except (KeyError, TypeError, ValueError) as exc:
        raise TargetError(f"Invalid parameters for target '{name}': {exc}") from exc


def _vector(value: Any, dims: Optional[int], default: float) -> np.ndarray:
    if value is None:
        if dims is None:
            raise ValueError("either 'dims' or an explicit vector must be given")
        return np.full(dims, default, dtype=float)
    arr = np.atleast_1d(np.asarray(value, dtype=float))
    if dims is not None and arr.shape[0] == 1 and dims > 1:
        arr = np.full(dims, float(arr[0]))
    return arr


@register("gaussian")
def _gaussian(params: Dict[str, Any]) -> Target:
    """Isotropic Gaussian, unnormalized: ``-0.5 * ||x - mean||^2 / scale^2``."""
    dims = params.pop("dims", None)
    mean = _vector(params.pop("mean", None), dims, 0.0)
    scale = float(params.pop("scale", 1.0))
    if params:
        raise TypeError(f"unexpected parameters {sorted(params)}")
    if scale <= 0:
        raise ValueError("scale must be positive")

    def log_likelihood(x: np.ndarray) -> float:
        with np.errstate(over="ignore"):
            z = (x - mean) / scale
            return float(-0.5 * np.dot(z, z))

    return Target("gaussian", log_likelihood, int(mean.shape[0]))


@register("mvnormal")
def _mvnormal(params: Dict[str, Any]) -> Target:
    """Correlated normal through ``scipy.stats.multivariate_normal``."""
    mean = np.atleast_1d(np.asarray(params.pop("mean"), dtype=float))
    cov = np.asarray(params.pop("cov"), dtype=float)
    if params:
        raise TypeError(f"unexpected parameters {sorted(params)}")
    dist = stats.multivariate_normal(mean=mean, cov=cov)

    def log_likelihood(x: np.ndarray) -> float:
        return float(dist.logpdf(x))

    return Target("mvnormal", log_likelihood, int(mean.shape[0]))


@register("uniform_box")
def _uniform_box(params: Dict[str, Any]) -> Target:
    """Flat density on ``[low, high]`` per coordinate, ``-inf`` outside."""
    dims = params.pop("dims", None)
    low = _vector(params.pop("low", None), dims, -1.0)
    high = _vector(params.pop("high", None), dims if dims is not None else low.shape[0], 1.0)
    if params:
        raise TypeError(f"unexpected parameters {sorted(params)}")
    if low.shape != high.shape or np.any(low >= high):
        raise ValueError("low and high must have equal length with low < high")

    def log_likelihood(x: np.ndarray) -> float:
        if np.all((x >= low) & (x <= high)):
            return 0.0
        return -np.inf

    return Target("uniform_box", log_likelihood, int(low.shape[0]))


@register("rosenbrock")
def _rosenbrock(params: Dict[str, Any]) -> Target:
    """Banana-shaped density ``-sum(b (x[i+1] - x[i]^2)^2 + (a - x[i])^2) / scale``."""
    a = float(params.pop("a", 1.0))
    b = float(params.pop("b", 100.0))
    scale = float(params.pop("scale", 20.0))
    dims = params.pop("dims", 2)
    if params:
        raise TypeError(f"unexpected parameters {sorted(params)}")
    if scale <= 0:
        raise ValueError("scale must be positive")

    def log_likelihood(x: np.ndarray) -> float:
        head, tail = x[:-1], x[1:]
        with np.errstate(over="ignore", invalid="ignore"):
            val = np.sum(b * (tail - head ** 2) ** 2 + (a - head) ** 2)
        if not np.isfinite(val):
            return -np.inf
        return float(-val / scale)

    return Target("rosenbrock", log_likelihood, int(dims) if dims is not None else None)


@register("student_t")
def _student_t(params: Dict[str, Any]) -> Target:
    """Independent Student-t coordinates through ``scipy.stats.t``."""
    df = float(params.pop("df", 3.0))
    dims = params.pop("dims", None)
    loc = _vector(params.pop("loc", None), dims, 0.0)
    scale = float(params.pop("scale", 1.0))
    if params:
        raise TypeError(f"unexpected parameters {sorted(params)}")
    dist = stats.t(df=df, loc=loc, scale=scale)

    def log_likelihood(x: np.ndarray) -> float:
        return float(np.sum(dist.logpdf(x)))

    return Target("student_t", log_likelihood, int(loc.shape[0]))
