"""Playlist conversion use case.

Drives one (source playlist, target catalog) conversion from idempotency
claim through compatibility gate, per-song matching and target playlist
creation, to a terminal ConversionRecord. Conversion-level failures are
reported on the returned record rather than raised. Cancellation and
unexpected errors propagate, but only after the record is marked failed so
the (playlist, catalog) pair can be converted again.
"""

import asyncio

from attrs import define, field

from tunebridge.application.services.song_matcher import SongMatcher
from tunebridge.application.utilities.batching import chunked
from tunebridge.config import get_logger, settings
from tunebridge.config.settings import APIConfig
from tunebridge.domain.compatibility import CompatibilityAnalyzer
from tunebridge.domain.entities import (
    ConversionError,
    ConversionRecord,
    Playlist,
)
from tunebridge.domain.errors import (
    ConversionCancelledError,
    DuplicateConversionError,
    ExternalCatalogError,
    LowCompatibilityError,
    NoCredentialError,
    NotFoundError,
    TunebridgeError,
    UnsupportedCatalogError,
)
from tunebridge.domain.matching import CatalogClient, CatalogProvider, SongMatch
from tunebridge.domain.repositories import (
    ConversionRepositoryProtocol,
    PlaylistRepositoryProtocol,
)

logger = get_logger(__name__).bind(service="conversion")

UNMATCHED_REASON = "No equivalent song found"


def _default_analyzer() -> CompatibilityAnalyzer:
    return CompatibilityAnalyzer(settings.compatibility)


@define(slots=True)
class ConversionOrchestrator:
    """Use case for converting a playlist to another catalog.

    Collaborators are injected so the orchestrator stays free of transport
    and storage details. The returned record is always terminal or, for a
    duplicate request, an unpersisted failed record.
    """

    catalogs: CatalogProvider
    conversions: ConversionRepositoryProtocol
    playlists: PlaylistRepositoryProtocol | None = None
    matcher: SongMatcher = field(factory=SongMatcher)
    analyzer: CompatibilityAnalyzer = field(factory=_default_analyzer)
    api_config: APIConfig = field(factory=lambda: settings.api)

    async def convert(
        self,
        playlist: Playlist,
        target_catalog: str,
        requesting_user: str,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> ConversionRecord:
        """Convert a playlist to an equivalent playlist on another catalog.

        Args:
            playlist: Source playlist with its songs in order
            target_catalog: Catalog to create the new playlist on
            requesting_user: User whose target-catalog credential is used
            cancel_event: Set to stop starting new song matches

        Returns:
            ConversionRecord in completed or failed state

        Raises:
            asyncio.CancelledError: The calling task was cancelled; the stored
                record is failed with code "cancelled"
        """
        target = str(target_catalog)
        record = ConversionRecord(
            source_playlist_id=playlist.id,
            target_catalog=target,
            requested_by=requesting_user,
        )

        try:
            record = await self.conversions.claim(record)
        except DuplicateConversionError as e:
            logger.warning(
                "Duplicate conversion rejected",
                playlist_id=playlist.id,
                target_catalog=target,
            )
            return record.mark_failed(e)

        logger.info(
            "Converting playlist",
            conversion_id=record.id,
            playlist_name=playlist.name,
            target_catalog=target,
            playlist_id=playlist.id,
            song_count=playlist.song_count,
        )

        try:
            client = self._target_client(playlist, target)

            report = self.analyzer.analyze(playlist.songs, target)
            if not self.analyzer.is_acceptable(report):
                raise LowCompatibilityError(
                    f"Low compatibility ({round(report.score * 100)}%) with {target}",
                    report=report,
                )

            access_token = await self._access_token(client, requesting_user, target)

            record = await self.conversions.save_conversion(
                record.mark_processing(warnings=report.issues)
            )
            matches = await self.matcher.match_many(
                playlist.songs,
                target,
                client,
                concurrency=self.api_config.match_concurrency,
                cancel_event=cancel_event,
            )
            if (cancel_event is not None and cancel_event.is_set()) or None in matches:
                raise ConversionCancelledError("Cancelled by caller")

            completed = await self._finish(record, playlist, client, access_token, matches)
            logger.info(
                "Conversion completed",
                conversion_id=completed.id,
                matched=completed.matched_count,
                unmatched=completed.unmatched_count,
                conversion_rate=round(completed.conversion_rate, 3),
            )
            return await self.conversions.save_conversion(completed)
        except TunebridgeError as e:
            logger.warning(
                "Conversion failed",
                conversion_id=record.id,
                error=e.message,
                error_code=e.code,
            )
            return await self.conversions.save_conversion(record.mark_failed(e))
        except asyncio.CancelledError:
            # The claim must be released even though this task is unwinding
            logger.warning("Conversion interrupted", conversion_id=record.id)
            await asyncio.shield(
                self._release(record, ConversionCancelledError("Conversion interrupted"))
            )
            raise
        except Exception as e:
            logger.opt(exception=e).error(
                "Unexpected conversion failure",
                conversion_id=record.id,
                error_type=type(e).__name__,
            )
            await self._release(record, TunebridgeError(f"Unexpected failure: {e}"))
            raise

    async def _release(self, record: ConversionRecord, error: TunebridgeError) -> None:
        """Persist ``record`` as failed after an error that is being re-raised."""
        try:
            await self.conversions.save_conversion(record.mark_failed(error))
        except Exception as e:
            logger.opt(exception=e).error(
                "Could not mark conversion failed",
                conversion_id=record.id,
                error_type=type(e).__name__,
            )

    async def convert_by_id(
        self,
        playlist_id: str,
        target_catalog: str,
        requesting_user: str,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> ConversionRecord:
        """Load a playlist by id and convert it.

        A missing playlist yields an unpersisted failed record with NotFoundError.
        """
        if self.playlists is None:
            raise RuntimeError("ConversionOrchestrator has no playlist repository")

        playlist = await self.playlists.load_playlist(playlist_id)
        if playlist is None:
            record = ConversionRecord(
                source_playlist_id=playlist_id,
                target_catalog=str(target_catalog),
                requested_by=requesting_user,
            )
            return record.mark_failed(NotFoundError(f"Playlist {playlist_id} not found"))

        return await self.convert(
            playlist, target_catalog, requesting_user, cancel_event=cancel_event
        )

    async def preview(self, playlist: Playlist, target_catalog: str) -> list[SongMatch]:
        """Match every song without creating or persisting anything.

        Raises:
            UnsupportedCatalogError: No client is registered for the catalog
        """
        target = str(target_catalog)
        client = self.catalogs.get_client(target)
        matches = await self.matcher.match_many(
            playlist.songs,
            target,
            client,
            concurrency=self.api_config.match_concurrency,
        )
        return [
            match if match is not None else SongMatch(source_song=song)
            for match, song in zip(matches, playlist.songs, strict=True)
        ]

    async def history(self, user_id: str) -> list[ConversionRecord]:
        """A user's conversion records, newest first."""
        return await self.conversions.list_conversions(user_id)

    def _target_client(self, playlist: Playlist, target: str) -> CatalogClient:
        if str(playlist.catalog) == target:
            raise UnsupportedCatalogError(f"Playlist is already on {target}")
        if not self.api_config.supports_playlist_creation(target):
            raise UnsupportedCatalogError(f"Playlist creation is not supported on {target}")
        return self.catalogs.get_client(target)

    async def _access_token(
        self, client: CatalogClient, user_id: str, target: str
    ) -> str:
        try:
            token = await client.get_access_token(user_id)
        except NoCredentialError:
            raise
        except Exception as e:
            raise NoCredentialError(
                f"Could not obtain access token for {target}: {e}"
            ) from e
        if not token:
            raise NoCredentialError(f"No access token available for {target}")
        return token

    async def _finish(
        self,
        record: ConversionRecord,
        playlist: Playlist,
        client: CatalogClient,
        access_token: str,
        matches: list[SongMatch | None],
    ) -> ConversionRecord:
        matched = [m for m in matches if m is not None and m.matched_song is not None]
        errors = [
            ConversionError(
                song_id=m.source_song.id,
                song_title=m.source_song.title,
                reason=UNMATCHED_REASON,
            )
            for m in matches
            if m is not None and m.matched_song is None
        ]

        target_playlist_id = None
        if matched:
            target_playlist_id = await self._create_target_playlist(
                client, access_token, playlist, record.target_catalog, matched
            )

        return record.mark_completed(
            matched_count=len(matched),
            unmatched_count=len(errors),
            errors=errors,
            target_playlist_id=target_playlist_id,
        )

    async def _create_target_playlist(
        self,
        client: CatalogClient,
        access_token: str,
        playlist: Playlist,
        target: str,
        matched: list[SongMatch],
    ) -> str:
        name = f"{playlist.name} (Converted from {playlist.catalog})"
        description = f"Playlist converted from {playlist.catalog} to {target}"
        track_ids = [m.matched_song.catalog_track_id for m in matched]

        try:
            playlist_id = await client.create_playlist(access_token, name, description)
            for chunk in chunked(track_ids, self.api_config.batch_size_for(target)):
                await client.add_tracks(access_token, playlist_id, chunk)
        except TunebridgeError:
            raise
        except Exception as e:
            raise ExternalCatalogError(
                f"Failed to create playlist on {target}: {e}"
            ) from e

        logger.debug(
            "Target playlist created",
            target_playlist_id=playlist_id,
            track_count=len(track_ids),
        )
        return playlist_id
