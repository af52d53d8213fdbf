"""Tunebridge: cross-catalog playlist conversion and recommendations."""

__version__ = "0.1.0"
