"""Registry mapping catalog names to their clients."""

from tunebridge.config import get_logger, settings
from tunebridge.config.settings import APIConfig
from tunebridge.domain.errors import UnsupportedCatalogError
from tunebridge.domain.matching import CatalogClient

from .resilient import ResilientCatalogClient

logger = get_logger(__name__)


class CatalogRegistry:
    """Holds one client per catalog and hands them to the core.

    Clients are wrapped in ResilientCatalogClient on registration unless
    ``resilient=False`` is passed.
    """

    def __init__(self, config: APIConfig | None = None) -> None:
        self.config = config or settings.api
        self._clients: dict[str, CatalogClient] = {}

    def register(self, client: CatalogClient, *, resilient: bool = True) -> None:
        """Register a catalog client under its own catalog name.

        Args:
            client: Client implementation
            resilient: Wrap the client with timeouts, retries and error mapping
        """
        catalog = str(client.catalog)
        if resilient and not isinstance(client, ResilientCatalogClient):
            client = ResilientCatalogClient(client, self.config)
        self._clients[catalog] = client
        logger.debug(f"Registered catalog client: {catalog}")

    def get_client(self, catalog: str) -> CatalogClient:
        """Get the client for a catalog.

        Raises:
            UnsupportedCatalogError: No client is registered for the catalog
        """
        try:
            return self._clients[str(catalog)]
        except KeyError:
            available = ", ".join(self._clients) or "none"
            raise UnsupportedCatalogError(
                f"No client registered for catalog '{catalog}'. "
                f"Available catalogs: {available}"
            ) from None

    @property
    def catalogs(self) -> list[str]:
        return list(self._clients)

    def __contains__(self, catalog: object) -> bool:
        return str(catalog) in self._clients
