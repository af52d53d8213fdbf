"""Tests for the playlist conversion use case."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from tests.fixtures.models import FakeCatalogClient, make_song
from tunebridge.application.services import SongMatcher
from tunebridge.application.use_cases import ConversionOrchestrator
from tunebridge.config.settings import APIConfig, CompatibilityConfig
from tunebridge.domain.compatibility import CompatibilityAnalyzer
from tunebridge.domain.entities import ConversionStatus, Playlist
from tunebridge.domain.errors import (
    DuplicateConversionError,
    LowCompatibilityError,
)
from tunebridge.infrastructure.connectors import CatalogRegistry
from tunebridge.infrastructure.persistence.repositories import (
    InMemoryConversionRepository,
    InMemoryPlaylistRepository,
)

UNMATCHED_INDICES = {2, 6, 10, 14, 18}


def _source_playlist(count=20):
    return Playlist(
        id="pl-20",
        name="Twenty",
        catalog="youtube",
        owner_id="user-1",
        songs=[
            make_song(f"s{i:02d}", f"Song {i:02d}", f"Artist {i:02d}")
            for i in range(count)
        ],
    )


def _target_songs(count=20, missing=UNMATCHED_INDICES):
    return [
        make_song(f"t{i:02d}", f"Song {i:02d}", f"Artist {i:02d}", catalog="spotify")
        for i in range(count)
        if i not in missing
    ]


@pytest.fixture
def api_config():
    return APIConfig(match_concurrency=4, retry_base_delay=0.0)


@pytest.fixture
def spotify():
    return FakeCatalogClient(catalog="spotify", songs=_target_songs())


@pytest.fixture
def conversions():
    return InMemoryConversionRepository()


@pytest.fixture
def orchestrator(spotify, conversions, api_config):
    registry = CatalogRegistry(api_config)
    registry.register(spotify, resilient=False)
    return ConversionOrchestrator(
        catalogs=registry,
        conversions=conversions,
        matcher=SongMatcher(search_timeout=1.0),
        analyzer=CompatibilityAnalyzer(CompatibilityConfig()),
        api_config=api_config,
    )


class TestConvert:
    async def test_partial_match_statistics(self, orchestrator, spotify, conversions):
        playlist = _source_playlist()

        record = await orchestrator.convert(playlist, "spotify", "user-1")

        assert record.status == ConversionStatus.COMPLETED
        assert record.matched_count == 15
        assert record.unmatched_count == 5
        assert record.conversion_rate == 0.75
        assert record.target_playlist_id == "spotify-playlist-1"
        assert await conversions.find_conversion("pl-20", "spotify") == record

    async def test_target_playlist_preserves_source_order(self, orchestrator, spotify):
        await orchestrator.convert(_source_playlist(), "spotify", "user-1")

        expected = [f"spotify:t{i:02d}" for i in range(20) if i not in UNMATCHED_INDICES]
        assert spotify.added_track_ids == expected
        assert spotify.created == [
            ("Twenty (Converted from youtube)", "Playlist converted from youtube to spotify")
        ]

    async def test_unmatched_songs_reported(self, orchestrator):
        record = await orchestrator.convert(_source_playlist(), "spotify", "user-1")

        assert [e.song_id for e in record.errors] == [
            f"s{i:02d}" for i in sorted(UNMATCHED_INDICES)
        ]
        assert all(e.code == "unmatched" for e in record.errors)
        assert record.errors[0].song_title == "Song 02"

    async def test_add_tracks_chunked_by_catalog_batch_size(self, spotify, conversions):
        api_config = APIConfig(batch_sizes={"spotify": 4})
        registry = CatalogRegistry(api_config)
        registry.register(spotify, resilient=False)
        orchestrator = ConversionOrchestrator(
            catalogs=registry, conversions=conversions, api_config=api_config
        )

        await orchestrator.convert(_source_playlist(), "spotify", "user-1")

        assert [len(chunk) for _, chunk in spotify.added] == [4, 4, 4, 3]

    async def test_no_matches_creates_no_playlist(self, orchestrator, spotify):
        spotify.songs = []

        record = await orchestrator.convert(_source_playlist(3), "spotify", "user-1")

        assert record.status == ConversionStatus.COMPLETED
        assert record.matched_count == 0
        assert record.conversion_rate == 0.0
        assert record.target_playlist_id is None
        assert spotify.created == []

    async def test_empty_playlist_completes(self, orchestrator, spotify):
        record = await orchestrator.convert(_source_playlist(0), "spotify", "user-1")

        assert record.status == ConversionStatus.COMPLETED
        assert record.conversion_rate == 0.0
        assert spotify.search_calls == []

    async def test_compatibility_issues_become_warnings(self, orchestrator):
        playlist = Playlist(
            id="pl-c",
            name="Classics",
            catalog="youtube",
            owner_id="user-1",
            songs=[make_song("s1", "Song 01", "Artist 01", genre="classical")],
        )

        record = await orchestrator.convert(playlist, "spotify", "user-1")

        assert record.warnings == [
            "Classical music may have limited availability on Spotify"
        ]


class TestConversionFailures:
    async def test_second_conversion_is_duplicate(self, orchestrator, spotify, conversions):
        playlist = _source_playlist()
        first = await orchestrator.convert(playlist, "spotify", "user-1")

        second = await orchestrator.convert(playlist, "spotify", "user-1")

        assert second.status == ConversionStatus.FAILED
        assert second.errors[0].code == "duplicate_conversion"
        assert len(spotify.created) == 1
        assert await conversions.find_conversion("pl-20", "spotify") == first
        with pytest.raises(DuplicateConversionError):
            second.raise_for_status()

    async def test_duplicate_claim_never_saves(self, spotify):
        conversions = AsyncMock()
        conversions.claim.side_effect = DuplicateConversionError("already converted")
        registry = CatalogRegistry()
        registry.register(spotify, resilient=False)
        orchestrator = ConversionOrchestrator(catalogs=registry, conversions=conversions)

        record = await orchestrator.convert(_source_playlist(), "spotify", "user-1")

        assert record.errors[0].code == "duplicate_conversion"
        conversions.save_conversion.assert_not_called()
        assert spotify.search_calls == []

    async def test_concurrent_conversions_only_one_runs(self, orchestrator, spotify):
        playlist = _source_playlist()

        records = await asyncio.gather(
            orchestrator.convert(playlist, "spotify", "user-1"),
            orchestrator.convert(playlist, "spotify", "user-1"),
        )

        statuses = sorted(r.status for r in records)
        assert statuses == [ConversionStatus.COMPLETED, ConversionStatus.FAILED]
        assert len(spotify.created) == 1

    async def test_missing_credential_performs_no_search(self, orchestrator, spotify):
        spotify.token = None

        record = await orchestrator.convert(_source_playlist(), "spotify", "user-1")

        assert record.status == ConversionStatus.FAILED
        assert record.errors[0].code == "no_credential"
        assert spotify.search_calls == []

    async def test_token_lookup_error_is_credential_failure(self, orchestrator, spotify):
        spotify.token_error = RuntimeError("refresh failed")

        record = await orchestrator.convert(_source_playlist(), "spotify", "user-1")

        assert record.errors[0].code == "no_credential"

    async def test_failed_conversion_can_be_retried(self, orchestrator, spotify, conversions):
        spotify.token = None
        playlist = _source_playlist()
        failed = await orchestrator.convert(playlist, "spotify", "user-1")

        spotify.token = "fresh-token"
        retried = await orchestrator.convert(playlist, "spotify", "user-1")

        assert failed.status == ConversionStatus.FAILED
        assert retried.status == ConversionStatus.COMPLETED
        assert (await conversions.find_conversion("pl-20", "spotify")).id == retried.id

    async def test_low_compatibility_skips_matching(self, spotify, conversions):
        registry = CatalogRegistry()
        registry.register(spotify, resilient=False)
        orchestrator = ConversionOrchestrator(
            catalogs=registry,
            conversions=conversions,
            analyzer=CompatibilityAnalyzer(
                CompatibilityConfig(
                    old_release_penalty=0.4,
                    long_duration_seconds=480,
                    long_duration_penalty=0.3,
                )
            ),
        )
        playlist = Playlist(
            id="pl-old",
            name="Symphonies",
            catalog="youtube",
            owner_id="user-1",
            songs=[
                make_song(f"s{i}", f"Symphony {i}", genre="classical", release_year=1964, duration=540)
                for i in range(4)
            ],
        )

        record = await orchestrator.convert(playlist, "spotify", "user-1")

        assert record.status == ConversionStatus.FAILED
        assert record.errors[0].code == "low_compatibility"
        assert spotify.search_calls == []
        with pytest.raises(LowCompatibilityError):
            record.raise_for_status()

    async def test_playlist_creation_failure(self, orchestrator, spotify):
        spotify.create_error = RuntimeError("quota exceeded")

        record = await orchestrator.convert(_source_playlist(), "spotify", "user-1")

        assert record.status == ConversionStatus.FAILED
        assert record.errors[0].code == "external_catalog"
        assert "quota exceeded" in record.errors[0].reason
        assert record.matched_count == 0

    async def test_cancellation_stops_matching(self, spotify, conversions, api_config):
        cancel = asyncio.Event()
        spotify.on_search = lambda query: cancel.set()
        registry = CatalogRegistry(api_config)
        registry.register(spotify, resilient=False)
        orchestrator = ConversionOrchestrator(
            catalogs=registry,
            conversions=conversions,
            api_config=APIConfig(match_concurrency=1),
        )

        record = await orchestrator.convert(
            _source_playlist(), "spotify", "user-1", cancel_event=cancel
        )

        assert record.status == ConversionStatus.FAILED
        assert record.errors[0].code == "cancelled"
        assert spotify.created == []
        # only the first song's queries ran
        assert len(spotify.search_calls) == 4

    async def test_cancelled_before_start(self, orchestrator, spotify):
        cancel = asyncio.Event()
        cancel.set()

        record = await orchestrator.convert(
            _source_playlist(), "spotify", "user-1", cancel_event=cancel
        )

        assert record.errors[0].code == "cancelled"
        assert spotify.search_calls == []

    async def test_caller_timeout_releases_the_claim(
        self, orchestrator, spotify, conversions
    ):
        spotify.delays = {'"Artist 00" "Song 00"': 5.0}
        playlist = _source_playlist()

        with pytest.raises(TimeoutError):
            async with asyncio.timeout(0.2):
                await orchestrator.convert(playlist, "spotify", "user-1")

        stored = await conversions.find_conversion("pl-20", "spotify")
        assert stored.status == ConversionStatus.FAILED
        assert stored.errors[0].code == "cancelled"
        assert spotify.created == []

        spotify.delays = {}
        retried = await orchestrator.convert(playlist, "spotify", "user-1")

        assert retried.status == ConversionStatus.COMPLETED
        assert retried.matched_count == 15

    async def test_unexpected_error_propagates_after_failing_record(
        self, orchestrator, conversions
    ):
        orchestrator.matcher = AsyncMock()
        orchestrator.matcher.match_many.side_effect = RuntimeError("matcher exploded")

        with pytest.raises(RuntimeError, match="matcher exploded"):
            await orchestrator.convert(_source_playlist(), "spotify", "user-1")

        stored = await conversions.find_conversion("pl-20", "spotify")
        assert stored.status == ConversionStatus.FAILED
        assert stored.errors[0].code == "error"
        assert "matcher exploded" in stored.errors[0].reason

    @pytest.mark.parametrize(
        ("source_catalog", "target"),
        [("spotify", "spotify"), ("youtube", "apple"), ("youtube", "deezer")],
    )
    async def test_unsupported_targets(self, orchestrator, source_catalog, target):
        playlist = Playlist(
            id="pl-x",
            name="X",
            catalog=source_catalog,
            owner_id="user-1",
            songs=[make_song("s1", "Song 01")],
        )

        record = await orchestrator.convert(playlist, target, "user-1")

        assert record.status == ConversionStatus.FAILED
        assert record.errors[0].code == "unsupported_catalog"


class TestOtherOperations:
    async def test_convert_by_id(self, orchestrator):
        orchestrator.playlists = InMemoryPlaylistRepository([_source_playlist()])

        record = await orchestrator.convert_by_id("pl-20", "spotify", "user-1")

        assert record.matched_count == 15

    async def test_convert_by_id_missing_playlist(self, orchestrator, conversions):
        orchestrator.playlists = InMemoryPlaylistRepository()

        record = await orchestrator.convert_by_id("nope", "spotify", "user-1")

        assert record.status == ConversionStatus.FAILED
        assert record.errors[0].code == "not_found"
        assert await conversions.find_conversion("nope", "spotify") is None

    async def test_preview_has_no_side_effects(self, orchestrator, spotify, conversions):
        matches = await orchestrator.preview(_source_playlist(), "spotify")

        assert len(matches) == 20
        assert sum(m.matched_song is not None for m in matches) == 15
        assert spotify.created == []
        assert await conversions.find_conversion("pl-20", "spotify") is None

    async def test_history_newest_first(self, orchestrator):
        first = await orchestrator.convert(_source_playlist(), "spotify", "user-1")
        other = Playlist(
            id="pl-2", name="Other", catalog="youtube", owner_id="user-1",
            songs=[make_song("x1", "Song 01", "Artist 01")],
        )
        second = await orchestrator.convert(other, "spotify", "user-1")

        history = await orchestrator.history("user-1")

        assert [r.id for r in history] == [second.id, first.id]
        assert await orchestrator.history("someone-else") == []
