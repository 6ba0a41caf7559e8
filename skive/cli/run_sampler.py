# skive/cli/run_sampler.py
from __future__ import annotations

import argparse
import datetime as _dt
import logging
import sys
import traceback
from pathlib import Path
from typing import Any, Dict, List

import numpy as np

from skive.diagnostics.summary import chain_means, summarize_chains
from skive.inference.sampler import ConfigurationError, SamplerConfig, SliceSampler
from skive.targets import build_target
from skive.utils.config_parser import load_config, merge_overrides, parse_overrides
from skive.utils.io import ensure_dir, save_draws, save_json, save_yaml
from skive.utils.logging_utils import StepTimer, log_config, setup_logging
from skive.utils.seed import spawn_rngs

logger = logging.getLogger("skive.cli")


def _verbosity_to_level(verbosity: int) -> int:
    if verbosity <= 0:
        return logging.WARNING
    if verbosity == 1:
        return logging.INFO
    return logging.DEBUG


def _timestamp() -> str:
    return _dt.datetime.now().strftime("%Y%m%d-%H%M%S")


def _derive_run_dir(base_out: Path, name: str | None) -> Path:
    return base_out / f"{name or 'run'}-{_timestamp()}"


def _resolve_init(cfg: Dict[str, Any], dims: int | None) -> np.ndarray:
    init = cfg.get("init")
    if init is None:
        if dims is None:
            raise ConfigurationError("Config must give 'init' when the target has no fixed dimension.")
        return np.zeros(dims)
    init = np.atleast_1d(np.asarray(init, dtype=float))
    if dims is not None and init.shape[0] != dims:
        raise ConfigurationError(f"'init' has {init.shape[0]} entries but the target has {dims} dimensions.")
    return init


def run_sampling(cfg: Dict[str, Any], run_dir: Path, *, plot: bool = False, show_progress: bool = False) -> Dict[str, Any]:
    """Run every chain described by ``cfg`` and write artifacts into ``run_dir``.

    Artifacts: ``draws.npz`` (values/log_likelihood per chain), ``summary.json``
    and, with ``plot``, ``trace.png`` / ``marginal.png`` for the first chain.
    """
    if "target" not in cfg:
        raise ConfigurationError("Config is missing the 'target' section.")
    target = build_target(cfg["target"])
    sampler_cfg = SamplerConfig.from_mapping(cfg.get("sampler"))
    n_samples = int(cfg.get("n_samples", 1000))
    n_chains = int(cfg.get("chains", 1))
    if n_samples < 1:
        raise ConfigurationError(f"n_samples must be at least 1, got {n_samples}.")
    if n_chains < 1:
        raise ConfigurationError(f"chains must be at least 1, got {n_chains}.")
    init = _resolve_init(cfg, target.dims)

    ensure_dir(run_dir)
    values: List[np.ndarray] = []
    log_likelihoods: List[np.ndarray] = []
    for c, rng in enumerate(spawn_rngs(cfg.get("seed"), n_chains)):
        with StepTimer(f"chain {c}", logger=logger, level=logging.INFO) as timer:
            sampler = SliceSampler.from_config(
                target.log_likelihood, init, sampler_cfg, rng=rng, show_progress=show_progress
            )
            v, ll = sampler.draw(n_samples, show_progress=show_progress)
            timer.steps = sampler.steps_taken
        values.append(v)
        log_likelihoods.append(ll)

    save_draws(run_dir / "draws.npz", values, log_likelihoods)
    result: Dict[str, Any] = {
        "status": "OK",
        "target": target.name,
        "dims": int(init.shape[0]),
        "chains": n_chains,
        "n_samples": n_samples,
        "sampler": {
            "burnin": sampler_cfg.burnin,
            "thin": sampler_cfg.thin,
            "componentwise": sampler_cfg.componentwise,
            "init_step": sampler_cfg.init_step,
            "step_base": sampler_cfg.step_base,
        },
        "chain_means": chain_means(values),
        "summary": summarize_chains(values) if n_samples >= 2 else {},
    }
    save_json(result, run_dir / "summary.json")

    if plot:
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt

        from skive.viz.plots import marginal_histogram, trace_plot

        for fname, draw_fn in (("trace.png", trace_plot), ("marginal.png", marginal_histogram)):
            ax = draw_fn(values[0])
            ax.figure.savefig(run_dir / fname, dpi=120)
            plt.close(ax.figure)
    return result


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Draw slice samples for a target density described in YAML.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--config", "-c", nargs="+", type=str, required=True,
                        help="One or more YAML config files (merged from left to right).")
    parser.add_argument("--override", "-o", nargs="*", default=[],
                        help="Override config keys: e.g., sampler.thin=2 seed=7 n_samples=5000")
    parser.add_argument("--outdir", type=str, default="outputs/runs",
                        help="Base output directory.")
    parser.add_argument("--name", type=str, default=None,
                        help="Run name tag used in the run directory name.")
    parser.add_argument("--plot", action="store_true", help="Write trace and marginal plots.")
    parser.add_argument("--progress", action="store_true", help="Show progress bars.")
    parser.add_argument("--verbosity", "-v", action="count", default=0,
                        help="Increase logging verbosity (-v INFO, -vv DEBUG).")

    args = parser.parse_args(argv)
    setup_logging(_verbosity_to_level(args.verbosity))

    try:
        cfg = load_config([Path(p) for p in args.config])
        cfg = merge_overrides(cfg, parse_overrides(args.override or []))
        log_config(logger, cfg)

        run_dir = _derive_run_dir(Path(args.outdir).expanduser().resolve(), args.name or cfg.get("name"))
        save_yaml(cfg, run_dir / "resolved_config.yaml")

        run_sampling(cfg, run_dir, plot=args.plot, show_progress=args.progress)
        print(f"[OK] Sampling finished. Artifacts in: {run_dir}")
        return 0
    except Exception:
        print("[FATAL] Sampling failed:\n", file=sys.stderr)
        traceback.print_exc()
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
