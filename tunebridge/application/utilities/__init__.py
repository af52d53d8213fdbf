"""Application utilities - shared utilities for application services."""

from .batching import BoundedTaskPool, PoolResult, chunked

__all__ = [
    "BoundedTaskPool",
    "PoolResult",
    "chunked",
]
