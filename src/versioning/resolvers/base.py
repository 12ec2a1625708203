"""Registry client interface."""

from abc import ABC, abstractmethod

from ..models import Coordinate, VersionSet


class RegistryClient(ABC):
    """Looks up the published versions of a coordinate.

    Implementations raise RegistryError for NOT_FOUND, NETWORK and MALFORMED
    outcomes and may hold a network session between start() and stop().
    """

    async def start(self) -> None:
        """Acquire network resources."""

    async def stop(self) -> None:
        """Release network resources."""

    @abstractmethod
    async def fetch_versions(self, coordinate: Coordinate) -> VersionSet:
        """Return every version the registry lists for `coordinate`."""

    async def __aenter__(self) -> "RegistryClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()
