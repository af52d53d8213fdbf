"""Protocols for external catalogs consumed by the matching engine.

These protocols define contracts without depending on concrete catalog
clients, following the dependency inversion principle.
"""

from typing import Protocol, runtime_checkable

from tunebridge.domain.entities import Song


@runtime_checkable
class CatalogClient(Protocol):
    """One external music catalog's search and playlist capabilities."""

    @property
    def catalog(self) -> str:
        """Catalog identifier (e.g., 'spotify', 'youtube')."""
        ...

    async def search(self, query: str, limit: int) -> list[Song]:
        """Text search returning zero or more candidate songs.

        Raises:
            ExternalCatalogError: Network or catalog failure.
        """
        ...

    async def create_playlist(
        self, access_token: str, name: str, description: str | None = None
    ) -> str:
        """Create an empty playlist and return its external ID."""
        ...

    async def add_tracks(
        self, access_token: str, playlist_id: str, track_ids: list[str]
    ) -> None:
        """Append tracks in the given order."""
        ...

    async def get_access_token(self, user_id: str) -> str | None:
        """Return a usable token (refreshing if needed) or None."""
        ...


class CatalogProvider(Protocol):
    """Lookup of the client serving each catalog."""

    def get_client(self, catalog: str) -> CatalogClient:
        """Get the client for a catalog.

        Raises:
            UnsupportedCatalogError: No client is registered for the catalog
        """
        ...
