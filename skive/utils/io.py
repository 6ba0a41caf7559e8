"""I/O utilities for run artifacts."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Sequence

import numpy as np
import yaml


def ensure_dir(path: Path) -> Path:
    """Create directory if missing and return the path."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def save_json(data: Any, path: Path) -> None:
    """Write JSON with UTF-8 encoding."""
    ensure_dir(path.parent)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def save_yaml(data: Any, path: Path) -> None:
    ensure_dir(path.parent)
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)


def save_draws(path: Path, values: Sequence[np.ndarray], log_likelihoods: Sequence[np.ndarray]) -> None:
    """Store per-chain draws as ``values`` ``(chains, n, dims)`` and ``log_likelihood`` ``(chains, n)``."""
    ensure_dir(path.parent)
    np.savez(path, values=np.stack(values), log_likelihood=np.stack(log_likelihoods))
