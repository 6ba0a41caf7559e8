"""Plotting utilities for sampler output."""
from __future__ import annotations

from typing import Optional, Sequence, Tuple

import numpy as np
import matplotlib.pyplot as plt


def _get_fig_ax(ax: Optional[plt.Axes]) -> Tuple[plt.Figure, plt.Axes]:
    if ax is None:
        fig, new_ax = plt.subplots()
        return fig, new_ax
    return ax.figure, ax


def _as_2d(values) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    if arr.ndim == 1:
        arr = arr[:, None]
    if arr.ndim != 2:
        raise ValueError(f"expected (n,) or (n, dims) draws, got shape {arr.shape}")
    return arr


def trace_plot(
    values,
    *,
    names: Optional[Sequence[str]] = None,
    ax: Optional[plt.Axes] = None,
    title: Optional[str] = None,
) -> plt.Axes:
    """Line plot of each coordinate against draw index."""
    fig, ax = _get_fig_ax(ax)
    arr = _as_2d(values)
    idx = np.arange(arr.shape[0])
    for j in range(arr.shape[1]):
        label = names[j] if names is not None else f"x[{j}]"
        ax.plot(idx, arr[:, j], linewidth=0.7, label=label)
    ax.set_xlabel("Draw")
    ax.set_ylabel("Value")
    ax.set_title(title or "Trace")
    if arr.shape[1] <= 10:
        ax.legend(loc="upper right", fontsize="small")
    fig.tight_layout()
    return ax


def marginal_histogram(
    values,
    *,
    dim: int = 0,
    bins: int = 50,
    ax: Optional[plt.Axes] = None,
    title: Optional[str] = None,
) -> plt.Axes:
    """Density histogram of one coordinate."""
    fig, ax = _get_fig_ax(ax)
    column = _as_2d(values)[:, dim]
    ax.hist(column, bins=bins, density=True, alpha=0.8)
    ax.set_xlabel(f"x[{dim}]")
    ax.set_ylabel("Density")
    ax.set_title(title or f"Marginal of x[{dim}]")
    fig.tight_layout()
    return ax
