"""YAML run configs with ``defaults`` inheritance and dotted overrides."""
from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping

import yaml


def deep_update(target: Dict[str, Any], source: Mapping[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``source`` into ``target`` (mutates and returns target)."""
    for key, value in source.items():
        if isinstance(value, Mapping) and isinstance(target.get(key), dict):
            deep_update(target[key], value)
        else:
            target[key] = deepcopy(value) if isinstance(value, (dict, list)) else value
    return target


def _load_with_defaults(path: Path, seen: frozenset) -> Dict[str, Any]:
    path = path.resolve()
    if path in seen:
        raise ValueError(f"Config defaults cycle detected at {path}")
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config {path} must be a YAML mapping at top-level.")

    defaults = data.pop("defaults", None) or []
    if isinstance(defaults, str):
        defaults = [defaults]
    if not isinstance(defaults, list):
        raise ValueError(f"'defaults' in {path} must be a string or a list.")

    merged: Dict[str, Any] = {}
    for item in defaults:
        ref = Path(item)
        if not ref.is_absolute():
            ref = path.parent / ref
        if not ref.exists():
            raise FileNotFoundError(f"Default config '{item}' referenced from {path} not found.")
        deep_update(merged, _load_with_defaults(ref, seen | {path}))
    return deep_update(merged, data)


def load_config(paths: Path | Iterable[Path]) -> Dict[str, Any]:
    """Load one or more YAML configs, merged left to right."""
    if isinstance(paths, (str, Path)):
        paths = [paths]
    cfg: Dict[str, Any] = {}
    for p in paths:
        p = Path(p).expanduser()
        if not p.exists():
            raise FileNotFoundError(f"Config not found: {p}")
        deep_update(cfg, _load_with_defaults(p, frozenset()))
    return cfg


def _cast(value: str) -> Any:
    """Interpret override values such as ``true``, ``3``, ``1e-3``, ``null`` or ``[0, 1]``."""
    v = value.strip()
    low = v.lower()
    if low in {"true", "false"}:
        return low == "true"
    if low in {"null", "none"}:
        return None
    for conv in (int, float):
        try:
            return conv(v)
        except ValueError:
            pass
    if v.startswith(("[", "{")):
        return yaml.safe_load(v)
    return v


def parse_overrides(pairs: List[str]) -> Dict[str, Any]:
    """Turn ``['sampler.thin=2', 'seed=7']`` into a nested override dict."""
    root: Dict[str, Any] = {}
    for item in pairs:
        if "=" not in item:
            raise ValueError(f"Override must be key=value, got: '{item}'")
        key, raw = item.split("=", 1)
        keys = key.strip().split(".")
        parent = root
        for k in keys[:-1]:
            parent = parent.setdefault(k, {})
            if not isinstance(parent, dict):
                raise ValueError(f"Key path conflict at '{key}': '{k}' already holds a value")
        parent[keys[-1]] = _cast(raw)
    return root


def merge_overrides(config: Dict[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``config`` with nested ``overrides`` applied."""
    return deep_update(deepcopy(config), overrides)
