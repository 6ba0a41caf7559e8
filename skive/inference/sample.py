"""Sample values carrying a memoized log-likelihood."""
from __future__ import annotations

from typing import Callable, Optional, Union

import numpy as np

LogLikelihood = Callable[[np.ndarray], float]


class Sample:
    """A point in sample space paired with its log-likelihood.

    The log-likelihood is either known up front (e.g. a candidate already
    evaluated by the slice procedure) or pending, in which case the function
    is called on first access and the result cached. The user function is
    evaluated at most once per instance.
    """

    __slots__ = ("_value", "_log_likelihood", "_func")

    def __init__(self, value, log_likelihood: Union[float, LogLikelihood]):
        arr = np.array(value, dtype=float)
        if arr.ndim != 1:
            raise ValueError(f"Sample value must be a 1-D vector, got shape {arr.shape}.")
        arr.setflags(write=False)
        self._value = arr
        if callable(log_likelihood):
            self._func: Optional[LogLikelihood] = log_likelihood
            self._log_likelihood: Optional[float] = None
        else:
            self._func = None
            self._log_likelihood = float(log_likelihood)

    @property
    def value(self) -> np.ndarray:
        return self._value

    @property
    def dims(self) -> int:
        return int(self._value.shape[0])

    @property
    def is_evaluated(self) -> bool:
        return self._log_likelihood is not None

    @property
    def log_likelihood(self) -> float:
        if self._log_likelihood is None:
            self._log_likelihood = float(self._func(self._value))
            self._func = None
        return self._log_likelihood

    def __repr__(self) -> str:
        ll = f"{self._log_likelihood!r}" if self.is_evaluated else "<pending>"
        return f"Sample(value={self._value.tolist()!r}, log_likelihood={ll})"
