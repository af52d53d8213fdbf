"""Recommendation scoring, mood table and profile derivation."""

from .moods import (
    MOOD_CONFIG,
    Mood,
    MoodAnalysis,
    MoodProfile,
    QuestionnaireResponse,
    analyze_mood,
    get_mood_profile,
)
from .profile import build_music_profile, default_profile
from .scoring import RecommendationScorer

__all__ = [
    "MOOD_CONFIG",
    "Mood",
    "MoodAnalysis",
    "MoodProfile",
    "QuestionnaireResponse",
    "RecommendationScorer",
    "analyze_mood",
    "build_music_profile",
    "default_profile",
    "get_mood_profile",
]
