"""Inference subpackage: samples, direction strategies, slice procedure and sampler loop."""

from .directions import componentwise_directions, directions_for_step, random_direction
from .sample import LogLikelihood, Sample
from .sampler import ConfigurationError, SamplerConfig, SamplerState, SliceSampler, advance
from .slicing import SliceBounds, SliceTrace, slice_sample, step_in, step_out
