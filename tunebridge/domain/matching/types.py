"""Pure domain types for song matching and confidence scoring."""

from typing import Any

from attrs import define, field, validators

from tunebridge.domain.entities import Song

EXACT_MATCH_THRESHOLD = 0.8


@define(frozen=True, slots=True)
class ConfidenceEvidence:
    """Evidence used to calculate the confidence score.

    Captures each similarity term and its weighted contribution so a match can
    be explained after the fact.
    """

    title_similarity: float = 0.0
    artist_similarity: float = 0.0
    duration_similarity: float = 0.0
    year_similarity: float | None = None
    title_score: float = 0.0
    artist_score: float = 0.0
    duration_score: float = 0.0
    year_score: float = 0.0
    final_score: float = 0.0

    def as_dict(self) -> dict[str, Any]:
        """Convert to a dictionary for storage alongside a conversion."""
        return {
            "title_similarity": round(self.title_similarity, 3),
            "artist_similarity": round(self.artist_similarity, 3),
            "duration_similarity": round(self.duration_similarity, 3),
            "year_similarity": (
                round(self.year_similarity, 3)
                if self.year_similarity is not None
                else None
            ),
            "title_score": round(self.title_score, 3),
            "artist_score": round(self.artist_score, 3),
            "duration_score": round(self.duration_score, 3),
            "year_score": round(self.year_score, 3),
            "final_score": round(self.final_score, 3),
        }


@define(frozen=True, slots=True)
class SongMatch:
    """Result of matching one source song against one target catalog.

    ``is_exact_match`` is derived from confidence so the two can never drift
    apart.
    """

    source_song: Song
    matched_song: Song | None = None
    confidence: float = field(default=0.0, validator=[validators.ge(0), validators.le(1)])
    evidence: ConfidenceEvidence | None = None

    @property
    def is_exact_match(self) -> bool:
        return self.confidence > EXACT_MATCH_THRESHOLD

    @property
    def is_matched(self) -> bool:
        return self.matched_song is not None
