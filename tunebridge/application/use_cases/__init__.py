"""Application use cases - orchestrate business operations."""

from .convert_playlist import ConversionOrchestrator

__all__ = [
    "ConversionOrchestrator",
]
