"""In-memory repositories for tests, previews and single-process use."""

import asyncio
from collections.abc import Iterable

from tunebridge.config import get_logger
from tunebridge.domain.entities import ConversionRecord, Playlist, Song
from tunebridge.domain.errors import DuplicateConversionError, NotFoundError

logger = get_logger(__name__)


class InMemoryConversionRepository:
    """ConversionRecord store keyed by (source playlist, target catalog).

    Claims are check-and-insert under an asyncio.Lock, so concurrent
    conversions of the same pair in one event loop cannot both proceed.
    """

    def __init__(self) -> None:
        self._records: dict[tuple[str, str], ConversionRecord] = {}
        self._lock = asyncio.Lock()

    @staticmethod
    def _key(playlist_id: str, target_catalog: str) -> tuple[str, str]:
        return playlist_id, str(target_catalog)

    async def find_conversion(
        self, playlist_id: str, target_catalog: str
    ) -> ConversionRecord | None:
        return self._records.get(self._key(playlist_id, target_catalog))

    async def claim(self, record: ConversionRecord) -> ConversionRecord:
        key = self._key(record.source_playlist_id, record.target_catalog)
        async with self._lock:
            existing = self._records.get(key)
            if existing is not None and existing.is_active:
                raise DuplicateConversionError(
                    f"Playlist {record.source_playlist_id} already converted "
                    f"to {record.target_catalog}",
                    existing_id=existing.id,
                )
            if existing is not None:
                logger.debug(
                    "Superseding failed conversion",
                    previous_id=existing.id,
                    conversion_id=record.id,
                )
            self._records[key] = record
        return record

    async def save_conversion(self, record: ConversionRecord) -> ConversionRecord:
        key = self._key(record.source_playlist_id, record.target_catalog)
        async with self._lock:
            current = self._records.get(key)
            if current is None or current.id != record.id:
                raise NotFoundError(f"Conversion {record.id} has not been claimed")
            self._records[key] = record
        return record

    async def list_conversions(self, user_id: str) -> list[ConversionRecord]:
        records = [r for r in self._records.values() if r.requested_by == user_id]
        return sorted(records, key=lambda r: r.created_at, reverse=True)


class InMemoryPlaylistRepository:
    """Playlist lookup over a fixed set of playlists."""

    def __init__(self, playlists: Iterable[Playlist] = ()) -> None:
        self._playlists = {playlist.id: playlist for playlist in playlists}

    def add(self, playlist: Playlist) -> None:
        self._playlists[playlist.id] = playlist

    async def load_playlist(self, playlist_id: str) -> Playlist | None:
        return self._playlists.get(playlist_id)

    async def load_playlist_songs(self, playlist_id: str) -> list[Song]:
        playlist = self._playlists.get(playlist_id)
        if playlist is None:
            raise NotFoundError(f"Playlist {playlist_id} not found")
        return list(playlist.songs)


class InMemorySongLibrary:
    """SongLibrary over in-memory playlists and a candidate song pool."""

    def __init__(
        self, playlists: Iterable[Playlist] = (), songs: Iterable[Song] = ()
    ) -> None:
        self._playlists = list(playlists)
        self._songs = list(songs)

    async def get_user_playlists(self, user_id: str) -> list[Playlist]:
        return [p for p in self._playlists if p.owner_id == user_id]

    async def find_songs_by_genre(self, genre: str, limit: int) -> list[Song]:
        genre = genre.lower()
        return [s for s in self._songs if s.genre and s.genre.lower() == genre][:limit]

    async def find_songs_by_artist(self, artist: str, limit: int) -> list[Song]:
        artist = artist.lower()
        return [s for s in self._songs if s.artist.lower() == artist][:limit]

    async def find_songs_with_features(self, limit: int) -> list[Song]:
        return [s for s in self._songs if s.audio_features is not None][:limit]
