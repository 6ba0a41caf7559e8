"""Random generator helpers: one independent generator per chain."""
from __future__ import annotations

from typing import List, Optional, Union

import numpy as np
from numpy.random import Generator, SeedSequence

SeedLike = Union[None, int, SeedSequence, Generator]


def make_rng(seed: SeedLike = None) -> Generator:
    """Return ``seed`` if it already is a Generator, otherwise build one from it."""
    if isinstance(seed, Generator):
        return seed
    return np.random.default_rng(seed)


def spawn_rngs(seed: Optional[Union[int, SeedSequence]], n: int) -> List[Generator]:
    """Create ``n`` statistically independent generators from one seed.

    Chains must not share a generator; spawning child seed sequences keeps
    their streams independent while the whole run stays reproducible.
    """
    if n < 1:
        raise ValueError("Number of generators must be at least 1.")
    root = seed if isinstance(seed, SeedSequence) else SeedSequence(seed)
    return [np.random.default_rng(child) for child in root.spawn(n)]
