"""Core domain entities representing music and conversion concepts."""

from .conversion import (
    UNMATCHED_CODE,
    CompatibilityReport,
    ConversionError,
    ConversionRecord,
    ConversionStatus,
    estimated_matches,
)
from .profile import (
    ListeningHistory,
    RecommendationResult,
    RecommendationScore,
    RecommendedSong,
    UserMusicProfile,
)
from .song import AudioFeatures, Catalog, Playlist, Song

__all__ = [
    # Song entities
    "AudioFeatures",
    "Catalog",
    "Playlist",
    "Song",
    # Conversion entities
    "UNMATCHED_CODE",
    "CompatibilityReport",
    "ConversionError",
    "ConversionRecord",
    "ConversionStatus",
    "estimated_matches",
    # Profile entities
    "ListeningHistory",
    "RecommendationResult",
    "RecommendationScore",
    "RecommendedSong",
    "UserMusicProfile",
]
