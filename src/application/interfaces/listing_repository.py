from abc import ABC, abstractmethod
from uuid import UUID

from src.domain.entities.listing import Listing
from src.domain.query.filter_compiler import CompiledQuery


class ListingRepository(ABC):
    """Port for persisting and querying Listing aggregates."""

    @abstractmethod
    async def save(self, listing: Listing) -> None:
        ...

    @abstractmethod
    async def get_by_id(self, listing_id: UUID) -> Listing | None:
        """Return the listing with its owner summary populated."""
        ...

    @abstractmethod
    async def delete(self, listing_id: UUID) -> None:
        ...

    @abstractmethod
    async def commit(self) -> None:
        """Make every save and delete since the last commit durable."""
        ...

    @abstractmethod
    async def find(self, query: CompiledQuery) -> list[Listing]:
        """Return listings matching the predicate, in the query's sort order."""
        ...
