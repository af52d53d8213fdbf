"""Pure algorithms for song matching and confidence scoring.

These functions contain no I/O and implement the core business logic for
deciding how likely a candidate on one catalog is the same recording as a
source song on another.
"""

import math

from tunebridge.config.settings import MatchingConfig
from tunebridge.domain.entities import Song

from .similarity import string_similarity
from .types import ConfidenceEvidence

DEFAULT_MATCHING_CONFIG = MatchingConfig()


def calculate_duration_similarity(source_seconds: float, candidate_seconds: float) -> float:
    """max(0, 1 - |delta| / source duration)."""
    if source_seconds <= 0:
        return 1.0 if candidate_seconds == source_seconds else 0.0
    return max(0.0, 1 - abs(source_seconds - candidate_seconds) / source_seconds)


def calculate_year_similarity(
    source_year: int | None, candidate_year: int | None, tolerance: int = 10
) -> float | None:
    """max(0, 1 - |delta| / tolerance), or None when either year is unknown."""
    if not source_year or not candidate_year:
        return None
    return max(0.0, 1 - abs(source_year - candidate_year) / tolerance)


def calculate_confidence(
    source: Song,
    candidate: Song,
    config: MatchingConfig | None = None,
) -> tuple[float, ConfidenceEvidence]:
    """Calculate weighted match confidence between a source song and a candidate.

    confidence = 0.4 title + 0.3 artist + 0.2 duration + 0.1 year

    The year term only contributes when both songs know their release year;
    its weight is not redistributed, so confidence caps at 0.9 otherwise.

    Args:
        source: Song on the source catalog
        candidate: Song returned by the target catalog
        config: Weights (defaults to MatchingConfig())

    Returns:
        Tuple of (confidence in [0, 1], evidence)
    """
    config = config or DEFAULT_MATCHING_CONFIG

    title_similarity = string_similarity(source.title, candidate.title)
    artist_similarity = string_similarity(source.artist, candidate.artist)
    duration_similarity = calculate_duration_similarity(
        source.duration_seconds, candidate.duration_seconds
    )
    year_similarity = calculate_year_similarity(
        source.release_year, candidate.release_year, config.year_tolerance
    )

    title_score = config.title_weight * title_similarity
    artist_score = config.artist_weight * artist_similarity
    duration_score = config.duration_weight * duration_similarity
    year_score = config.year_weight * year_similarity if year_similarity is not None else 0.0

    # fsum keeps exact-weight sums (0.4 + 0.3 + 0.2) free of rounding drift
    confidence = math.fsum([title_score, artist_score, duration_score, year_score])
    confidence = max(0.0, min(1.0, confidence))

    evidence = ConfidenceEvidence(
        title_similarity=title_similarity,
        artist_similarity=artist_similarity,
        duration_similarity=duration_similarity,
        year_similarity=year_similarity,
        title_score=title_score,
        artist_score=artist_score,
        duration_score=duration_score,
        year_score=year_score,
        final_score=confidence,
    )
    return confidence, evidence
