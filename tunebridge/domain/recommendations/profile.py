"""Derive a listener's taste profile from their playlists."""

from collections import Counter
from collections.abc import Sequence
from statistics import fmean

from tunebridge.domain.entities import ListeningHistory, Playlist, UserMusicProfile

MAX_FAVORITE_GENRES = 5
MAX_FAVORITE_ARTISTS = 10
DEFAULT_GENRES = ("pop", "rock")


def default_profile(user_id: str) -> UserMusicProfile:
    """Profile for a user with no listening history."""
    return UserMusicProfile(user_id=user_id, favorite_genres=list(DEFAULT_GENRES))


def build_music_profile(user_id: str, playlists: Sequence[Playlist]) -> UserMusicProfile:
    """Build a UserMusicProfile from every song in a user's playlists.

    Favourite genres and artists are the most frequent ones, ties broken by
    first appearance. Audio preferences average only the songs that carry
    audio features and fall back to the neutral defaults otherwise.
    """
    songs = [song for playlist in playlists for song in playlist.songs]
    if not songs:
        return default_profile(user_id)

    genre_counts = Counter(song.genre.lower() for song in songs if song.genre)
    artist_counts = Counter(song.artist for song in songs)
    featured = [song.audio_features for song in songs if song.audio_features]

    profile = default_profile(user_id)
    return UserMusicProfile(
        user_id=user_id,
        favorite_genres=[g for g, _ in genre_counts.most_common(MAX_FAVORITE_GENRES)],
        favorite_artists=[a for a, _ in artist_counts.most_common(MAX_FAVORITE_ARTISTS)],
        average_duration=fmean(song.duration_seconds for song in songs),
        preferred_tempo=(
            fmean(f.tempo_bpm for f in featured) if featured else profile.preferred_tempo
        ),
        preferred_energy=(
            fmean(f.energy for f in featured) if featured else profile.preferred_energy
        ),
        preferred_valence=(
            fmean(f.valence for f in featured) if featured else profile.preferred_valence
        ),
        listening_history=ListeningHistory(
            total_songs=len(songs),
            unique_artists=len(artist_counts),
            unique_genres=len(genre_counts),
            average_playlist_length=len(songs) / len(playlists),
        ),
    )
