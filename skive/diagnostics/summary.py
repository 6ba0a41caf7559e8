"""Posterior summaries for slice-sampler chains (moments, ESS, split R-hat)."""
from __future__ import annotations

from typing import Dict, List, Sequence

import numpy as np

Array = np.ndarray


def _as_chains(draws) -> Array:
    """Coerce draws to ``(chains, n, dims)``.

    Accepts ``(n,)``, ``(n, dims)`` for a single chain, ``(chains, n, dims)``,
    or a sequence of per-chain ``(n, dims)`` arrays.
    """
    if isinstance(draws, (list, tuple)):
        arr = np.stack([np.asarray(c, dtype=float) for c in draws])
    else:
        arr = np.asarray(draws, dtype=float)
    if arr.ndim == 1:
        arr = arr[None, :, None]
    elif arr.ndim == 2:
        arr = arr[None, :, :]
    if arr.ndim == 3 and arr.shape[1] >= 1:
        return arr
    raise ValueError(f"draws must have shape (n,), (n, dims) or (chains, n, dims), got {arr.shape}")


def autocorrelation(x: Array) -> Array:
    """Normalized autocorrelation of a 1-D series for lags ``0..n-1``."""
    x = np.asarray(x, dtype=float)
    n = x.shape[0]
    centered = x - x.mean()
    var0 = float(np.dot(centered, centered)) / n
    if var0 <= 1e-12:
        ac = np.zeros(n)
        ac[0] = 1.0
        return ac
    # zero padding to the next power of two avoids circular wrap-around
    size = 1 << (2 * n - 1).bit_length()
    spectrum = np.fft.rfft(centered, size)
    acov = np.fft.irfft(spectrum * np.conjugate(spectrum), size)[:n] / n
    return acov / var0


def effective_sample_size(chains: Array) -> float:
    """ESS of one parameter from ``(chains, n)`` draws (Geyer initial positive sequence)."""
    chains = np.atleast_2d(np.asarray(chains, dtype=float))
    m, n = chains.shape
    if n < 4:
        return float(m * n)
    rho = np.mean([autocorrelation(c) for c in chains], axis=0)
    total = 0.0
    for k in range(1, n - 1, 2):
        pair = rho[k] + rho[k + 1]
        if pair < 0:
            break
        total += pair
    return float(min(m * n, m * n / max(1.0, 1.0 + 2.0 * total)))


def split_rhat(chains: Array) -> float:
    """Split R-hat of one parameter from ``(chains, n)`` draws."""
    chains = np.atleast_2d(np.asarray(chains, dtype=float))
    n = chains.shape[1] - chains.shape[1] % 2
    if n < 4:
        return float("nan")
    half = n // 2
    split = np.concatenate([chains[:, :half], chains[:, half:n]], axis=0)
    w = split.var(axis=1, ddof=1).mean()
    b = half * split.mean(axis=1).var(ddof=1)
    if w <= 0:
        return 1.0
    var_hat = (half - 1) / half * w + b / half
    return float(np.sqrt(var_hat / w))


def summarize_chains(draws, names: Sequence[str] | None = None) -> Dict[str, Dict[str, float]]:
    """Per-parameter mean, std, quantiles, ESS and (multi-chain) split R-hat."""
    arr = _as_chains(draws)
    n_chains, n, dims = arr.shape
    if names is None:
        names = [f"x[{i}]" for i in range(dims)]
    if len(names) != dims:
        raise ValueError(f"got {len(names)} names for {dims} dimensions")

    summary: Dict[str, Dict[str, float]] = {}
    for i, name in enumerate(names):
        param = arr[:, :, i]
        flat = param.ravel()
        q05, q50, q95 = np.quantile(flat, [0.05, 0.5, 0.95])
        entry = {
            "mean": float(flat.mean()),
            "std": float(flat.std(ddof=1)) if flat.size > 1 else 0.0,
            "q05": float(q05),
            "median": float(q50),
            "q95": float(q95),
            "ess": effective_sample_size(param),
        }
        if n_chains > 1:
            entry["rhat"] = split_rhat(param)
        summary[name] = entry
    return summary


def chain_means(draws) -> List[List[float]]:
    """Per-chain posterior means, ``[chain][dim]``."""
    return _as_chains(draws).mean(axis=1).tolist()
