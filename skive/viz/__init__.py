"""Plotting helpers."""
