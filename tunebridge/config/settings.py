"""Configuration management using Pydantic Settings.

Type-safe configuration with automatic environment variable loading and
validation. The configuration is organized into logical groups:
- LoggingConfig: Logging levels, files, and debugging options
- APIConfig: External catalog timeouts, concurrency, retries and batch limits
- MatchingConfig: Confidence weights for cross-catalog song matching
- CompatibilityConfig: Pre-flight heuristic thresholds and penalties
- RecommendationConfig: Blending bonuses and floors for recommendations
"""

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingConfig(BaseModel):
    """Logging configuration for console and file output."""

    console_level: str = "INFO"
    file_level: str = "DEBUG"
    log_file: Path = Path("logs/tunebridge.log")
    real_time_debug: bool = True


class APIConfig(BaseModel):
    """External catalog configuration and rate limiting."""

    # Per-call timeout for catalog searches and playlist writes
    search_timeout_seconds: float = 10.0
    max_results_per_query: int = 5

    # Bounded fan-out for per-song matching
    match_concurrency: int = 5

    retry_count: int = 3
    retry_base_delay: float = 0.5
    retry_max_delay: float = 30.0

    # Maximum track ids per add-tracks call
    default_batch_size: int = 50
    batch_sizes: dict[str, int] = Field(
        default_factory=lambda: {"spotify": 100, "youtube": 1, "apple": 25}
    )

    # Catalogs whose public API allows creating playlists
    playlist_creation: dict[str, bool] = Field(
        default_factory=lambda: {"spotify": True, "youtube": True, "apple": False}
    )

    def batch_size_for(self, catalog: str) -> int:
        """Get the add-tracks batch limit for a catalog."""
        return max(1, self.batch_sizes.get(str(catalog), self.default_batch_size))

    def supports_playlist_creation(self, catalog: str) -> bool:
        """Check whether playlists can be created on a catalog."""
        return self.playlist_creation.get(str(catalog), True)


class MatchingConfig(BaseModel):
    """Weights for the weighted confidence function."""

    title_weight: float = 0.4
    artist_weight: float = 0.3
    duration_weight: float = 0.2
    year_weight: float = 0.1
    year_tolerance: int = 10
    exact_match_threshold: float = 0.8


class GenreRule(BaseModel):
    """A catalog-specific genre keyword that lowers compatibility."""

    keyword: str
    penalty: float
    issue: str


def _default_genre_rules() -> dict[str, list[GenreRule]]:
    return {
        "spotify": [
            GenreRule(
                keyword="classical",
                penalty=0.1,
                issue="Classical music may have limited availability on Spotify",
            )
        ],
        "youtube": [
            GenreRule(
                keyword="explicit",
                penalty=0.2,
                issue="Explicit content may be restricted on YouTube",
            )
        ],
        "apple": [
            GenreRule(
                keyword="indie",
                penalty=0.15,
                issue="Indie music may have limited availability on Apple Music",
            )
        ],
    }


class CompatibilityConfig(BaseModel):
    """Tunable heuristics for the conversion pre-flight gate."""

    min_score: float = 0.3
    old_release_year: int = 1990
    old_release_penalty: float = 0.2
    long_duration_seconds: float = 600.0
    long_duration_penalty: float = 0.1
    genre_rules: dict[str, list[GenreRule]] = Field(
        default_factory=_default_genre_rules
    )


class RecommendationConfig(BaseModel):
    """Blending parameters for recommendation scoring.

    A genre-only match outranks an artist-only match, which outranks the best
    possible audio-only match (audio_weight).
    """

    genre_bonus: float = 0.7
    artist_bonus: float = 0.6
    audio_weight: float = 0.5
    min_score: float = 0.3
    mood_base_score: float = 0.8
    preference_bonus: float = 0.1
    neutral_similarity_score: float = 0.5
    default_limit: int = 20


class Settings(BaseSettings):
    """Main application settings with environment variable support.

    Nested values are set with the ``__`` delimiter, for example
    ``API__MATCH_CONCURRENCY=10`` or ``COMPATIBILITY__MIN_SCORE=0.4``.
    The .env file is automatically loaded for development convenience.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    logging: LoggingConfig = LoggingConfig()
    api: APIConfig = APIConfig()
    matching: MatchingConfig = MatchingConfig()
    compatibility: CompatibilityConfig = CompatibilityConfig()
    recommendations: RecommendationConfig = RecommendationConfig()

    database_url: str = "sqlite+aiosqlite:///data/tunebridge.db"


# Singleton instance for application use
settings = Settings()
