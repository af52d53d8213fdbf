"""Cross-catalog song matching service.

Coordinates query planning, catalog search and confidence scoring to find the
single best equivalent of a source song on a target catalog.
"""

import asyncio
from collections.abc import Sequence

from tunebridge.application.utilities.batching import BoundedTaskPool
from tunebridge.config import get_logger, settings
from tunebridge.config.settings import MatchingConfig
from tunebridge.domain.entities import Song
from tunebridge.domain.errors import ExternalCatalogError
from tunebridge.domain.matching import (
    CatalogClient,
    SongMatch,
    calculate_confidence,
    plan_queries,
)

logger = get_logger(__name__).bind(service="matching")


class SongMatcher:
    """Find the best matching song on a target catalog.

    Every planned query is searched (no short-circuit on a good hit) and the
    highest-confidence candidate across all of them wins; on ties the first
    candidate seen is kept. Failing queries are logged and skipped so one bad
    query never costs the whole song.

    The matcher holds configuration only, so one instance can serve many
    concurrent matches.
    """

    def __init__(
        self,
        config: MatchingConfig | None = None,
        *,
        search_timeout: float | None = None,
        max_results_per_query: int | None = None,
    ) -> None:
        self.config = config or settings.matching
        self.search_timeout = (
            search_timeout
            if search_timeout is not None
            else settings.api.search_timeout_seconds
        )
        self.max_results_per_query = (
            max_results_per_query
            if max_results_per_query is not None
            else settings.api.max_results_per_query
        )

    def _timeout_for(self, client: CatalogClient) -> float:
        # Clients that retry internally get room for their whole retry schedule
        budget = getattr(client, "call_budget_seconds", None)
        if isinstance(budget, int | float):
            return max(self.search_timeout, budget)
        return self.search_timeout

    async def _search(
        self, client: CatalogClient, query: str, limit: int
    ) -> list[Song]:
        timeout = self._timeout_for(client)
        try:
            async with asyncio.timeout(timeout):
                return await client.search(query, limit)
        except TimeoutError:
            logger.warning(
                "Catalog search timed out",
                catalog=str(client.catalog),
                query=query,
                timeout=timeout,
            )
        except ExternalCatalogError as e:
            logger.warning(
                "Catalog search failed",
                error=e.message,
                catalog=str(client.catalog),
                query=query,
            )
        except Exception as e:
            logger.opt(exception=e).warning(
                "Unexpected catalog search error",
                catalog=str(client.catalog),
                query=query,
                error_type=type(e).__name__,
            )
        return []

    async def match(
        self,
        source: Song,
        target_catalog: str,
        catalog_client: CatalogClient,
        max_results_per_query: int | None = None,
    ) -> SongMatch:
        """Match one source song against a target catalog.

        Args:
            source: Song to find an equivalent for
            target_catalog: Catalog being searched
            catalog_client: Client for the target catalog
            max_results_per_query: Candidates requested per query

        Returns:
            SongMatch with the best candidate, or no match and zero confidence
        """
        limit = max_results_per_query or self.max_results_per_query

        best_song: Song | None = None
        best_confidence = 0.0
        best_evidence = None

        for query in plan_queries(source):
            for candidate in await self._search(catalog_client, query, limit):
                confidence, evidence = calculate_confidence(source, candidate, self.config)
                # Strict comparison keeps the first of equally good candidates
                if best_song is None or confidence > best_confidence:
                    best_song = candidate
                    best_confidence = confidence
                    best_evidence = evidence

        if best_song is None:
            logger.debug(
                "No candidates found",
                song_id=source.id,
                title=source.title,
                target_catalog=str(target_catalog),
            )
        else:
            logger.debug(
                "Best candidate selected",
                song_id=source.id,
                candidate_id=best_song.catalog_track_id,
                confidence=round(best_confidence, 3),
            )

        return SongMatch(
            source_song=source,
            matched_song=best_song,
            confidence=best_confidence,
            evidence=best_evidence,
        )

    async def match_many(
        self,
        songs: Sequence[Song],
        target_catalog: str,
        catalog_client: CatalogClient,
        *,
        concurrency: int | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> list[SongMatch | None]:
        """Match songs on a bounded pool, returning results in input order.

        A song whose matching raised is reported as unmatched. Songs never
        started because ``cancel_event`` was set come back as None.
        """
        pool = BoundedTaskPool(
            concurrency_limit=concurrency or settings.api.match_concurrency,
            cancel_event=cancel_event,
        )
        result = await pool.run(
            songs, lambda song: self.match(song, target_catalog, catalog_client)
        )

        skipped = set(result.skipped)
        matches: list[SongMatch | None] = []
        for index, (song, value) in enumerate(zip(songs, result.values, strict=True)):
            if index in skipped:
                matches.append(None)
            elif value is None:
                matches.append(SongMatch(source_song=song))
            else:
                matches.append(value)
        return matches
