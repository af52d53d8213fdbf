"""Catalog client infrastructure: resilience wrapper and registry."""

from .registry import CatalogRegistry
from .resilient import ResilientCatalogClient

__all__ = [
    "CatalogRegistry",
    "ResilientCatalogClient",
]
