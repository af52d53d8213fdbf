"""Song-related domain entities.

Pure song and playlist representations with zero infrastructure dependencies.
"""

from enum import StrEnum, auto

import attrs
from attrs import define, field, validators


class Catalog(StrEnum):
    """Music-streaming catalogs with their own song/playlist namespace."""

    SPOTIFY = auto()
    YOUTUBE = auto()
    APPLE = auto()


def _non_blank(instance, attribute, value):
    if not value or not value.strip():
        raise ValueError(f"Song {attribute.name} is required")


_unit_interval = [validators.instance_of((int, float)), validators.ge(0), validators.le(1)]


@define(frozen=True, slots=True)
class AudioFeatures:
    """Audio descriptor vector for a recording.

    Most descriptors are bounded to [0, 1]; tempo and loudness are unbounded
    but typically fall in 50-200 BPM and -60-0 dB.
    """

    danceability: float = field(validator=_unit_interval)
    energy: float = field(validator=_unit_interval)
    valence: float = field(validator=_unit_interval)
    tempo_bpm: float = field(
        validator=[validators.instance_of((int, float)), validators.ge(0)]
    )
    loudness_db: float = 0.0
    acousticness: float = field(default=0.0, validator=_unit_interval)
    instrumentalness: float = field(default=0.0, validator=_unit_interval)
    liveness: float = field(default=0.0, validator=_unit_interval)
    speechiness: float = field(default=0.0, validator=_unit_interval)


@define(frozen=True, slots=True)
class Song:
    """Immutable song as known to one catalog.

    Songs are identified by (catalog, catalog_track_id) and never change after
    creation, except for lazily attached audio features.
    """

    id: str
    title: str = field(validator=_non_blank)
    artist: str = field(validator=_non_blank)
    catalog: str
    catalog_track_id: str
    duration_seconds: float = field(
        default=0, validator=[validators.instance_of((int, float)), validators.ge(0)]
    )
    album: str | None = None
    genre: str | None = None
    release_year: int | None = None
    audio_features: AudioFeatures | None = None

    @property
    def dedupe_key(self) -> tuple[str, str]:
        """Case-insensitive (title, artist) identity used for deduplication."""
        return self.title.lower(), self.artist.lower()

    def with_audio_features(self, features: AudioFeatures) -> "Song":
        """Create a copy of this song with audio features attached."""
        return attrs.evolve(self, audio_features=features)


@define(frozen=True, slots=True)
class Playlist:
    """Ordered collection of songs owned by a user on one catalog."""

    id: str
    name: str = field(validator=validators.instance_of(str))
    catalog: str
    owner_id: str
    songs: list[Song] = field(factory=list)
    description: str | None = None

    @property
    def song_count(self) -> int:
        return len(self.songs)
