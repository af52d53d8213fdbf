"""Resilience wrapper for external catalog clients.

Adds per-call timeouts, exponential backoff on transient failures and
translation of arbitrary client exceptions into domain errors, so the core
only ever sees ExternalCatalogError or NoCredentialError.

Only reads are retried. Playlist creation and track appends are not
idempotent, so a failure there surfaces immediately and the caller decides
whether to re-run the conversion.
"""

import asyncio
from collections.abc import Awaitable, Callable

import backoff

from tunebridge.config import get_logger, resilient_operation, settings
from tunebridge.config.settings import APIConfig
from tunebridge.domain.entities import Song
from tunebridge.domain.errors import (
    ExternalCatalogError,
    NoCredentialError,
    TunebridgeError,
)
from tunebridge.domain.matching import CatalogClient

logger = get_logger(__name__).bind(service="connectors")


class ResilientCatalogClient:
    """CatalogClient decorator with timeout, retry and error mapping."""

    def __init__(self, inner: CatalogClient, config: APIConfig | None = None) -> None:
        self.inner = inner
        self.config = config or settings.api

    @property
    def catalog(self) -> str:
        return self.inner.catalog

    @property
    def call_budget_seconds(self) -> float:
        """Worst-case wall time of a retried call: every attempt plus every wait."""
        attempts = self.config.retry_count + 1
        waits = sum(
            min(self.config.retry_max_delay, self.config.retry_base_delay * 2**n)
            for n in range(self.config.retry_count)
        )
        return self.config.search_timeout_seconds * attempts + waits

    def _on_backoff(self, details):
        """Log backoff attempts."""
        exception = details.get("exception")
        logger.warning(
            f"Retrying {details['target'].__name__} on {self.catalog}",
            attempt=details["tries"],
            wait=f"{details['wait']:.2f}s",
            error=str(exception) if exception else "Unknown error",
        )

    def _on_giveup(self, details):
        """Log when we give up retrying."""
        exception = details.get("exception")
        logger.error(
            f"All {details['tries']} attempts failed for {details['target'].__name__}",
            catalog=str(self.catalog),
            elapsed_time=f"{details['elapsed']:.2f}s",
            error=str(exception) if exception else "Unknown error",
        )

    async def _guarded[R](
        self, operation: str, func: Callable[[], Awaitable[R]]
    ) -> R:
        """Run one attempt under the call timeout, mapping foreign errors."""
        try:
            async with asyncio.timeout(self.config.search_timeout_seconds):
                return await func()
        except TunebridgeError:
            raise
        except TimeoutError as e:
            raise ExternalCatalogError(
                f"{operation} on {self.catalog} timed out after "
                f"{self.config.search_timeout_seconds}s",
                catalog=str(self.catalog),
            ) from e
        except Exception as e:
            raise ExternalCatalogError(
                f"{operation} on {self.catalog} failed: {e}",
                catalog=str(self.catalog),
            ) from e

    async def _with_retries[R](
        self, operation: str, func: Callable[[], Awaitable[R]]
    ) -> R:
        @backoff.on_exception(
            backoff.expo,
            ExternalCatalogError,
            max_tries=self.config.retry_count + 1,  # +1 because first attempt counts
            factor=self.config.retry_base_delay,
            max_value=self.config.retry_max_delay,
            jitter=backoff.full_jitter,
            on_backoff=self._on_backoff,
            on_giveup=self._on_giveup,
        )
        async def attempt() -> R:
            return await self._guarded(operation, func)

        return await attempt()

    @resilient_operation("catalog_search")
    async def search(self, query: str, limit: int) -> list[Song]:
        return await self._with_retries(
            "search", lambda: self.inner.search(query, limit)
        )

    @resilient_operation("catalog_create_playlist")
    async def create_playlist(
        self, access_token: str, name: str, description: str | None = None
    ) -> str:
        return await self._guarded(
            "create_playlist",
            lambda: self.inner.create_playlist(access_token, name, description),
        )

    @resilient_operation("catalog_add_tracks")
    async def add_tracks(
        self, access_token: str, playlist_id: str, track_ids: list[str]
    ) -> None:
        await self._guarded(
            "add_tracks",
            lambda: self.inner.add_tracks(access_token, playlist_id, track_ids),
        )

    @resilient_operation("catalog_access_token")
    async def get_access_token(self, user_id: str) -> str | None:
        try:
            return await self._with_retries(
                "get_access_token", lambda: self.inner.get_access_token(user_id)
            )
        except ExternalCatalogError as e:
            raise NoCredentialError(
                f"Could not obtain access token for {self.catalog}: {e.message}"
            ) from e
