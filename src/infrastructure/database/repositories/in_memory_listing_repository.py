"""
In-memory listing repository, used in tests and local development.

Evaluates compiled predicates with ``Predicate.matches`` so query behaviour
can be exercised without a database.
"""
import copy
from uuid import UUID

from src.application.interfaces.listing_repository import ListingRepository
from src.domain.entities.actor import OwnerSummary
from src.domain.entities.listing import Listing
from src.domain.query.filter_compiler import CompiledQuery


class InMemoryListingRepository(ListingRepository):
    def __init__(self, owners: list[OwnerSummary] | None = None) -> None:
        self._listings: dict[UUID, Listing] = {}
        self._owners: dict[UUID, OwnerSummary] = {o.id: o for o in owners or []}

    def add_owner(self, owner: OwnerSummary) -> None:
        self._owners[owner.id] = owner

    def _snapshot(self, listing: Listing) -> Listing:
        stored = copy.copy(listing)
        stored.images = list(listing.images)
        stored._events = []
        stored.owner = self._owners.get(listing.owner_id)
        return stored

    async def save(self, listing: Listing) -> None:
        self._listings[listing.id] = self._snapshot(listing)

    async def get_by_id(self, listing_id: UUID) -> Listing | None:
        stored = self._listings.get(listing_id)
        return self._snapshot(stored) if stored is not None else None

    async def delete(self, listing_id: UUID) -> None:
        self._listings.pop(listing_id, None)

    async def commit(self) -> None:
        # Writes apply immediately
        return None

    async def find(self, query: CompiledQuery) -> list[Listing]:
        matches = [l for l in self._listings.values() if query.predicate.matches(l)]

        # Tie-breakers first, then the primary key (sorts are stable).
        matches.sort(key=lambda l: str(l.id))
        matches.sort(key=lambda l: l.created_at, reverse=True)
        matches.sort(key=lambda l: getattr(l, query.sort.field), reverse=query.sort.descending)

        if query.limit is not None:
            matches = matches[: query.limit]
        return [self._snapshot(l) for l in matches]
