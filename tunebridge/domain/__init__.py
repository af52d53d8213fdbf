"""Tunebridge domain layer - pure business logic with no I/O."""

from . import entities, matching, recommendations

from .compatibility import CompatibilityAnalyzer
from .entities import (
    Catalog,
    ConversionRecord,
    ConversionStatus,
    Playlist,
    Song,
    UserMusicProfile,
)
from .matching import SongMatch, calculate_confidence, string_similarity
from .recommendations import RecommendationScorer

__all__ = [
    # Modules
    "entities",
    "matching",
    "recommendations",
    # Key domain types
    "Catalog",
    "ConversionRecord",
    "ConversionStatus",
    "Playlist",
    "Song",
    "UserMusicProfile",
    # Matching and scoring
    "CompatibilityAnalyzer",
    "RecommendationScorer",
    "SongMatch",
    "calculate_confidence",
    "string_similarity",
]
