"""Domain repository interfaces.

These interfaces define the contracts for data access without depending on
infrastructure implementations, following the dependency inversion principle.
"""

from collections.abc import Awaitable
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from tunebridge.domain.entities import ConversionRecord, Playlist, Song


class ConversionRepositoryProtocol(Protocol):
    """Repository interface for conversion record persistence."""

    def find_conversion(
        self, playlist_id: str, target_catalog: str
    ) -> Awaitable["ConversionRecord | None"]:
        """Find the record for a (source playlist, target catalog) pair."""
        ...

    def claim(self, record: "ConversionRecord") -> Awaitable["ConversionRecord"]:
        """Atomically insert a pending record for its (playlist, target) pair.

        A failed record for the same pair is superseded.

        Raises:
            DuplicateConversionError: A non-failed record already exists
        """
        ...

    def save_conversion(self, record: "ConversionRecord") -> Awaitable["ConversionRecord"]:
        """Persist the latest state of a claimed record."""
        ...

    def list_conversions(self, user_id: str) -> Awaitable[list["ConversionRecord"]]:
        """List a user's conversion records, newest first."""
        ...


class PlaylistRepositoryProtocol(Protocol):
    """Repository interface for source playlist lookups."""

    def load_playlist(self, playlist_id: str) -> Awaitable["Playlist | None"]:
        """Load a playlist with its songs in order."""
        ...

    def load_playlist_songs(self, playlist_id: str) -> Awaitable[list["Song"]]:
        """Load only the songs of a playlist, in order."""
        ...


class SongLibraryProtocol(Protocol):
    """Candidate pool and listening history for recommendations."""

    def get_user_playlists(self, user_id: str) -> Awaitable[list["Playlist"]]:
        """All playlists owned by a user."""
        ...

    def find_songs_by_genre(self, genre: str, limit: int) -> Awaitable[list["Song"]]:
        """Songs tagged with a genre."""
        ...

    def find_songs_by_artist(self, artist: str, limit: int) -> Awaitable[list["Song"]]:
        """Songs by an artist."""
        ...

    def find_songs_with_features(self, limit: int) -> Awaitable[list["Song"]]:
        """Songs that carry audio features, for sound-based ranking."""
        ...
