"""Direction strategies for multivariate slice sampling."""
from __future__ import annotations

import logging
import math
from typing import List

import numpy as np
from numpy.random import Generator

logger = logging.getLogger(__name__)


def componentwise_directions(dims: int, rng: Generator) -> List[np.ndarray]:
    """Return the ``dims`` standard basis vectors in a random order."""
    basis = np.eye(dims)
    return [basis[i] for i in rng.permutation(dims)]


def random_direction(dims: int, rng: Generator) -> np.ndarray:
    """Draw a direction uniformly on the unit sphere.

    Standard normal draws are normalized to unit length. A draw whose norm is
    zero (or not finite) cannot be normalized and is discarded.
    """
    while True:
        draw = rng.standard_normal(dims)
        norm = float(np.linalg.norm(draw))
        if norm > 0.0 and math.isfinite(norm):
            return draw / norm
        logger.debug(f"Degenerate direction draw (norm={norm!r}); redrawing.")


def directions_for_step(dims: int, rng: Generator, componentwise: bool) -> List[np.ndarray]:
    """Directions consumed by one internal sampling step."""
    if componentwise:
        return componentwise_directions(dims, rng)
    return [random_direction(dims, rng)]
