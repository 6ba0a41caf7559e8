# skive/utils/logging_utils.py
"""Console/file logging for sampling runs, step-rate timers and progress bars.

``rich`` and ``tqdm`` are optional; without them output falls back to a plain
stderr handler and bare iterables.
"""
from __future__ import annotations

import logging
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Union

_HAS_RICH = False
try:  # Optional colored logging
    from rich.console import Console
    from rich.logging import RichHandler
    _HAS_RICH = True
except ImportError:
    Console = None  # type: ignore

_HAS_TQDM = False
try:
    from tqdm import tqdm as _tqdm  # type: ignore
    _HAS_TQDM = True
except ImportError:
    _tqdm = None  # type: ignore

LOGGER_NAME = "skive"
_PLAIN_FORMAT = "[%(asctime)s] %(levelname)s:%(name)s: %(message)s"
_FILE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _console_handler() -> logging.Handler:
    if _HAS_RICH:
        return RichHandler(console=Console(stderr=True), show_time=True, show_path=False, markup=False)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_PLAIN_FORMAT, datefmt="%H:%M:%S"))
    return handler


def _file_handler(path: Path) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(level: int = logging.INFO, log_file: Union[str, Path, None] = None) -> logging.Logger:
    """Attach console (and optional file) handlers to the ``skive`` logger.

    Calling it again replaces the previous handlers.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    handlers = [_console_handler()]
    if log_file:
        handlers.append(_file_handler(Path(log_file)))
    for h in handlers:
        h.setLevel(level)
        logger.addHandler(h)

    logger.debug(f"Logging at {logging.getLevelName(level)} to {len(handlers)} handler(s).")
    return logger


@dataclass
class StepTimer:
    """Time a stretch of sampling work and log its throughput on exit.

    Set ``steps`` inside the block to the number of internal sampling steps
    performed; the exit message then carries a steps-per-second rate.
    """
    label: str
    logger: Optional[logging.Logger] = None
    level: int = logging.DEBUG
    steps: int = 0
    elapsed: float = 0.0
    _start: float = field(default=0.0, repr=False)

    @property
    def rate(self) -> float:
        return self.steps / self.elapsed if self.elapsed > 0 else 0.0

    def __enter__(self) -> "StepTimer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.elapsed = time.perf_counter() - self._start
        if self.logger is None:
            return
        if exc_type is not None:
            self.logger.warning(
                f"{self.label}: {exc_type.__name__} after {self.steps} steps ({self.elapsed:.3f}s)."
            )
        elif self.steps:
            self.logger.log(
                self.level,
                f"{self.label}: {self.steps} steps in {self.elapsed:.3f}s ({self.rate:.1f} steps/s).",
            )
        else:
            self.logger.log(self.level, f"{self.label}: done in {self.elapsed:.3f}s.")


def progress(iterable: Iterable, *, total: Optional[int] = None, desc: Optional[str] = None, enabled: bool = True):
    """Wrap ``iterable`` in a transient tqdm bar when enabled and tqdm is installed."""
    if not (enabled and _HAS_TQDM):
        return iterable
    return _tqdm(iterable, total=total, desc=desc, leave=False)


def flatten_config(cfg: Mapping, prefix: str = "") -> Dict[str, Any]:
    """``{"sampler": {"thin": 2}}`` -> ``{"sampler.thin": 2}``."""
    flat: Dict[str, Any] = {}
    for k in sorted(cfg, key=str):
        key = f"{prefix}.{k}" if prefix else str(k)
        if isinstance(cfg[k], Mapping) and cfg[k]:
            flat.update(flatten_config(cfg[k], key))
        else:
            flat[key] = cfg[k]
    return flat


def log_config(logger: logging.Logger, cfg: Mapping) -> None:
    """Log the resolved run config, one dotted ``key = value`` line per leaf."""
    flat = flatten_config(cfg)
    width = max((len(k) for k in flat), default=0)
    logger.info(f"Resolved config ({len(flat)} entries):")
    for key, value in flat.items():
        logger.info(f"  {key:<{width}} = {value!r}")
