"""Posterior summaries of sampler output."""
