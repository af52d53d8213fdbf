"""Repository implementations for conversions, playlists and songs."""

from .conversion import ConversionMapper, SqlAlchemyConversionRepository
from .memory import (
    InMemoryConversionRepository,
    InMemoryPlaylistRepository,
    InMemorySongLibrary,
)

__all__ = [
    "ConversionMapper",
    "InMemoryConversionRepository",
    "InMemoryPlaylistRepository",
    "InMemorySongLibrary",
    "SqlAlchemyConversionRepository",
]
