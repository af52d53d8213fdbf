"""Song matching algorithms and types for cross-catalog identification."""

from .algorithms import (
    calculate_confidence,
    calculate_duration_similarity,
    calculate_year_similarity,
)
from .protocols import CatalogClient, CatalogProvider
from .queries import plan_queries
from .similarity import (
    AUDIO_TOLERANCE,
    SCORED_SIMILARITY_FLOOR,
    profile_similarity,
    scored_similarity,
    string_similarity,
    within_tolerance,
)
from .types import EXACT_MATCH_THRESHOLD, ConfidenceEvidence, SongMatch

__all__ = [
    "AUDIO_TOLERANCE",
    "EXACT_MATCH_THRESHOLD",
    "SCORED_SIMILARITY_FLOOR",
    "CatalogClient",
    "CatalogProvider",
    "ConfidenceEvidence",
    "SongMatch",
    "calculate_confidence",
    "calculate_duration_similarity",
    "calculate_year_similarity",
    "plan_queries",
    "profile_similarity",
    "scored_similarity",
    "string_similarity",
    "within_tolerance",
]
