"""Slice sampling from unnormalized log-densities."""

from .inference.sample import Sample
from .inference.sampler import ConfigurationError, SamplerConfig, SamplerState, SliceSampler, advance
from .inference.slicing import SliceBounds, SliceTrace, slice_sample

__version__ = "0.3.0"

__all__ = [
    "Sample",
    "SliceSampler",
    "SamplerConfig",
    "SamplerState",
    "ConfigurationError",
    "advance",
    "slice_sample",
    "SliceBounds",
    "SliceTrace",
]
