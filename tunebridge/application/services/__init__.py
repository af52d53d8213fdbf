"""Application services - matching and recommendation coordination."""

from .recommendation_service import RecommendationService
from .song_matcher import SongMatcher

__all__ = [
    "RecommendationService",
    "SongMatcher",
]
