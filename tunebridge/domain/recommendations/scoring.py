"""Recommendation scoring: blends genre, artist and audio signals per candidate.

Every contribution appends a human-readable reason so ranked output can
explain itself. All functions are pure; candidate pools come from the caller.
"""

from collections.abc import Iterable, Sequence
from statistics import fmean

from tunebridge.config.settings import RecommendationConfig
from tunebridge.domain.entities import (
    RecommendationScore,
    RecommendedSong,
    Song,
    UserMusicProfile,
)
from tunebridge.domain.matching.similarity import (
    SCORED_SIMILARITY_FLOOR,
    profile_similarity,
    scored_similarity,
)

from .moods import MoodProfile

GENRE_REASON = "Matches your favorite genre"
ARTIST_REASON = "Matches your favorite artist"
AUDIO_REASON = "Similar audio characteristics"
MOOD_REASON = "Mood-based recommendation"
SIMILAR_REASON = "Similar audio features"
NEUTRAL_REASON = "Similar platform and genre"

# Number of songs in history at which a profile counts as fully informed
PROFILE_COMPLETENESS_SONGS = 10


def _clamp(score: float) -> float:
    return max(0.0, min(1.0, score))


def _dedupe(songs: Iterable[Song], exclude_ids: Iterable[str] = ()) -> list[Song]:
    """Drop excluded songs and repeated (title, artist) pairs, first wins."""
    excluded = set(exclude_ids)
    seen: set[tuple[str, str]] = set()
    unique = []
    for song in songs:
        if song.id in excluded or song.dedupe_key in seen:
            continue
        seen.add(song.dedupe_key)
        unique.append(song)
    return unique


def _top(recommendations: list[RecommendedSong], limit: int | None) -> list[RecommendedSong]:
    # sorted() is stable, so equal scores keep input order
    ranked = sorted(recommendations, key=lambda r: r.score, reverse=True)
    return ranked if limit is None else ranked[: max(0, limit)]


class RecommendationScorer:
    """Scores and ranks candidate songs against a listener profile."""

    def __init__(self, config: RecommendationConfig | None = None) -> None:
        self.config = config or RecommendationConfig()

    def _preference_bonus(
        self,
        song: Song,
        profile: UserMusicProfile,
        genre_bonus: float,
        artist_bonus: float,
    ) -> tuple[float, list[str]]:
        score = 0.0
        reasons = []
        if profile.likes_genre(song.genre):
            score += genre_bonus
            reasons.append(GENRE_REASON)
        if profile.likes_artist(song.artist):
            score += artist_bonus
            reasons.append(ARTIST_REASON)
        return score, reasons

    def score(self, candidate: Song, profile: UserMusicProfile) -> RecommendationScore:
        """Blend genre, artist and audio contributions for one candidate.

        Genre and artist matches add fixed bonuses; audio similarity to the
        profile's preferred sound adds a weighted continuous term, but only
        when it clears the similarity floor.
        """
        score, reasons = self._preference_bonus(
            candidate, profile, self.config.genre_bonus, self.config.artist_bonus
        )

        similarity = profile_similarity(candidate.audio_features, profile)
        if similarity is not None and similarity > SCORED_SIMILARITY_FLOOR:
            score += self.config.audio_weight * similarity
            reasons.append(AUDIO_REASON)

        return RecommendationScore(score=_clamp(score), reasons=reasons)

    def rank(
        self,
        candidates: Iterable[Song],
        profile: UserMusicProfile,
        limit: int | None = None,
        exclude_ids: Iterable[str] = (),
    ) -> list[RecommendedSong]:
        """Score, filter, deduplicate and sort candidates, best first.

        Args:
            candidates: Candidate pool in discovery order
            profile: Listener profile to score against
            limit: Maximum results (defaults to config.default_limit)
            exclude_ids: Song ids to leave out, e.g. already-played songs

        Returns:
            Recommendations with score >= config.min_score
        """
        limit = self.config.default_limit if limit is None else limit
        recommendations = []
        for song in _dedupe(candidates, exclude_ids):
            result = self.score(song, profile)
            if result.score < self.config.min_score:
                continue
            recommendations.append(
                RecommendedSong(song=song, score=result.score, reasons=result.reasons)
            )
        return _top(recommendations, limit)

    def rank_for_mood(
        self,
        candidates: Iterable[Song],
        mood: MoodProfile,
        profile: UserMusicProfile,
        limit: int | None = None,
    ) -> list[RecommendedSong]:
        """Rank candidates that fit a mood, personalised by the profile.

        Mood candidates start from a fixed base score and gain a small bonus
        for each favourite genre or artist they hit.
        """
        limit = self.config.default_limit if limit is None else limit
        recommendations = []
        for song in _dedupe(candidates):
            if not mood.fits(song):
                continue
            bonus, reasons = self._preference_bonus(
                song,
                profile,
                self.config.preference_bonus,
                self.config.preference_bonus,
            )
            recommendations.append(
                RecommendedSong(
                    song=song,
                    score=_clamp(self.config.mood_base_score + bonus),
                    reasons=[MOOD_REASON, *reasons],
                )
            )
        return _top(recommendations, limit)

    def rank_similar(
        self,
        reference: Song,
        candidates: Iterable[Song],
        profile: UserMusicProfile,
        limit: int | None = None,
    ) -> list[RecommendedSong]:
        """Rank candidates by how close they sound to a reference song.

        Without reference features every candidate gets a neutral score, since
        there is nothing to compare against. Otherwise candidates lacking
        features are left out, as are scores at or below the similarity floor.
        """
        limit = self.config.default_limit if limit is None else limit
        pool = [
            song
            for song in _dedupe(candidates, exclude_ids=[reference.id])
            if song.dedupe_key != reference.dedupe_key
        ]

        recommendations = []
        for song in pool:
            if reference.audio_features is None:
                base, base_reason = self.config.neutral_similarity_score, NEUTRAL_REASON
            else:
                similarity = scored_similarity(song.audio_features, reference.audio_features)
                if similarity is None or similarity <= SCORED_SIMILARITY_FLOOR:
                    continue
                base, base_reason = similarity, SIMILAR_REASON

            bonus, reasons = self._preference_bonus(
                song,
                profile,
                self.config.preference_bonus,
                self.config.preference_bonus,
            )
            recommendations.append(
                RecommendedSong(
                    song=song,
                    score=_clamp(base + bonus),
                    reasons=[base_reason, *reasons],
                )
            )
        return _top(recommendations, limit)

    def recommendation_confidence(
        self, profile: UserMusicProfile, songs: Sequence[RecommendedSong]
    ) -> float:
        """Mean recommendation score scaled by how much history backs the profile."""
        if not songs:
            return 0.0
        completeness = min(
            1.0, profile.listening_history.total_songs / PROFILE_COMPLETENESS_SONGS
        )
        return _clamp(fmean(song.score for song in songs) * completeness)
