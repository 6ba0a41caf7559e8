"""Logging, configuration, I/O and seeding helpers."""
