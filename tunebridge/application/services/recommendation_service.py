"""Recommendation use cases built on the recommendation scorer.

Gathers candidate pools from a song library, derives the listener profile
from their playlists and delegates ranking to RecommendationScorer.
"""

import asyncio
from collections.abc import Iterable
import time

import attrs

from tunebridge.config import get_logger, settings
from tunebridge.domain.entities import (
    RecommendationResult,
    RecommendedSong,
    Song,
    UserMusicProfile,
)
from tunebridge.domain.recommendations import (
    MoodAnalysis,
    MoodProfile,
    QuestionnaireResponse,
    RecommendationScorer,
    analyze_mood,
    build_music_profile,
    get_mood_profile,
)
from tunebridge.domain.repositories import SongLibraryProtocol

logger = get_logger(__name__).bind(service="recommendations")

# How far to widen each candidate lookup relative to the requested limit
CANDIDATE_MULTIPLIER = 3
MAX_SEED_GENRES = 3
MAX_SEED_ARTISTS = 5


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


class RecommendationService:
    """Personalised, mood-based and similar-song recommendations."""

    def __init__(
        self,
        library: SongLibraryProtocol,
        scorer: RecommendationScorer | None = None,
    ) -> None:
        self.library = library
        self.scorer = scorer or RecommendationScorer(settings.recommendations)

    async def get_profile(self, user_id: str) -> tuple[UserMusicProfile, list[Song]]:
        """Build the user's profile and return it with their played songs."""
        playlists = await self.library.get_user_playlists(user_id)
        played = [song for playlist in playlists for song in playlist.songs]
        return build_music_profile(user_id, playlists), played

    async def _gather_candidates(self, lookups: Iterable) -> list[Song]:
        """Chain candidate pools in lookup order; a failing lookup is skipped."""
        pools = await asyncio.gather(*lookups, return_exceptions=True)
        candidates: list[Song] = []
        for index, pool in enumerate(pools):
            if isinstance(pool, Exception):
                logger.opt(exception=pool).warning(
                    "Candidate lookup failed",
                    lookup_index=index,
                    error=str(pool),
                    error_type=type(pool).__name__,
                )
            elif isinstance(pool, BaseException):
                raise pool
            else:
                candidates.extend(pool)
        return candidates

    def _result(
        self,
        songs: list[RecommendedSong],
        confidence: float,
        algorithm: str,
        started: float,
    ) -> RecommendationResult:
        result = RecommendationResult(
            songs=songs,
            confidence=confidence,
            algorithm=algorithm,
            processing_time_ms=_elapsed_ms(started),
        )
        logger.info(
            "Generated recommendations",
            algorithm=algorithm,
            count=len(songs),
            confidence=round(confidence, 3),
            processing_time_ms=result.processing_time_ms,
        )
        return result

    async def personalized(
        self,
        user_id: str,
        limit: int | None = None,
        exclude_played: bool = True,
    ) -> RecommendationResult:
        """Recommendations blended from favourite genres, artists and sound."""
        started = time.perf_counter()
        limit = limit or self.scorer.config.default_limit
        profile, played = await self.get_profile(user_id)

        pool_size = limit * CANDIDATE_MULTIPLIER
        candidates = await self._gather_candidates([
            *(
                self.library.find_songs_by_genre(genre, pool_size)
                for genre in profile.favorite_genres[:MAX_SEED_GENRES]
            ),
            *(
                self.library.find_songs_by_artist(artist, pool_size)
                for artist in profile.favorite_artists[:MAX_SEED_ARTISTS]
            ),
            self.library.find_songs_with_features(pool_size),
        ])

        exclude_ids = [song.id for song in played] if exclude_played else []
        ranked = self.scorer.rank(candidates, profile, limit, exclude_ids=exclude_ids)
        return self._result(
            ranked,
            self.scorer.recommendation_confidence(profile, ranked),
            "personalized",
            started,
        )

    async def for_mood(
        self, user_id: str, mood: str, limit: int | None = None
    ) -> RecommendationResult:
        """Recommendations that fit a mood, nudged toward the user's taste.

        Raises:
            ValueError: Unknown mood
        """
        started = time.perf_counter()
        return await self._rank_for_mood(user_id, get_mood_profile(mood), limit, started)

    async def for_questionnaire(
        self,
        user_id: str,
        responses: list[QuestionnaireResponse],
        limit: int | None = None,
    ) -> tuple[MoodAnalysis, RecommendationResult]:
        """Work out the listener's mood from their answers, then recommend for it.

        Genres named in answers to genre or style questions widen the mood's
        genre seeds.

        Raises:
            ValueError: No responses were given
        """
        started = time.perf_counter()
        analysis = analyze_mood(responses)
        logger.debug(
            "Mood analysed",
            primary_mood=str(analysis.primary_mood),
            confidence=round(analysis.confidence, 3),
        )
        mood_profile = attrs.evolve(
            get_mood_profile(analysis.primary_mood),
            genres=tuple(analysis.recommended_genres),
        )
        result = await self._rank_for_mood(user_id, mood_profile, limit, started)
        return analysis, result

    async def _rank_for_mood(
        self,
        user_id: str,
        mood_profile: MoodProfile,
        limit: int | None,
        started: float,
    ) -> RecommendationResult:
        limit = limit or self.scorer.config.default_limit
        profile, _ = await self.get_profile(user_id)

        pool_size = limit * CANDIDATE_MULTIPLIER
        candidates = await self._gather_candidates([
            *(
                self.library.find_songs_by_genre(genre, pool_size)
                for genre in mood_profile.genres
            ),
            self.library.find_songs_with_features(pool_size),
        ])

        ranked = self.scorer.rank_for_mood(candidates, mood_profile, profile, limit)
        # Mood seeds do not depend on listening history
        confidence = self.scorer.config.mood_base_score if ranked else 0.0
        return self._result(ranked, confidence, "mood-based", started)

    async def similar_to(
        self, user_id: str, song: Song, limit: int | None = None
    ) -> RecommendationResult:
        """Songs that sound like a reference song."""
        started = time.perf_counter()
        limit = limit or self.scorer.config.default_limit
        profile, _ = await self.get_profile(user_id)

        pool_size = limit * CANDIDATE_MULTIPLIER
        lookups = [
            self.library.find_songs_with_features(pool_size),
            self.library.find_songs_by_artist(song.artist, pool_size),
        ]
        if song.genre:
            lookups.append(self.library.find_songs_by_genre(song.genre, pool_size))
        candidates = await self._gather_candidates(lookups)

        ranked = self.scorer.rank_similar(song, candidates, profile, limit)
        return self._result(
            ranked,
            self.scorer.recommendation_confidence(profile, ranked),
            "audio-similarity",
            started,
        )
