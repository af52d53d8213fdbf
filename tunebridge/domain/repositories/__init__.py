"""Repository interfaces for the domain layer."""

from .interfaces import (
    ConversionRepositoryProtocol,
    PlaylistRepositoryProtocol,
    SongLibraryProtocol,
)

__all__ = [
    "ConversionRepositoryProtocol",
    "PlaylistRepositoryProtocol",
    "SongLibraryProtocol",
]
