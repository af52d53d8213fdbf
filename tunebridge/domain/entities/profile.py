"""Listener profile and recommendation entities."""

from attrs import define, field

from .song import Song


@define(frozen=True, slots=True)
class ListeningHistory:
    """Aggregate counts describing how much history backs a profile."""

    total_songs: int = 0
    unique_artists: int = 0
    unique_genres: int = 0
    average_playlist_length: float = 0.0


@define(frozen=True, slots=True)
class UserMusicProfile:
    """Taste profile derived from a user's playlists.

    Never a source of truth: it can be rebuilt from playlist history at any
    time with build_music_profile().
    """

    user_id: str
    favorite_genres: list[str] = field(factory=list)
    favorite_artists: list[str] = field(factory=list)
    average_duration: float = 240.0
    preferred_tempo: float = 120.0
    preferred_energy: float = 0.5
    preferred_valence: float = 0.5
    listening_history: ListeningHistory = field(factory=ListeningHistory)

    def likes_genre(self, genre: str | None) -> bool:
        if not genre:
            return False
        return genre.lower() in {g.lower() for g in self.favorite_genres}

    def likes_artist(self, artist: str) -> bool:
        return artist.lower() in {a.lower() for a in self.favorite_artists}


@define(frozen=True, slots=True)
class RecommendationScore:
    """Blended score for one candidate with the reasons that produced it."""

    score: float
    reasons: list[str] = field(factory=list)


@define(frozen=True, slots=True)
class RecommendedSong:
    """A ranked recommendation."""

    song: Song
    score: float
    reasons: list[str] = field(factory=list)


@define(frozen=True, slots=True)
class RecommendationResult:
    """Ranked recommendations with the metadata of how they were produced."""

    songs: list[RecommendedSong]
    confidence: float
    algorithm: str
    processing_time_ms: int = 0
