from dataclasses import dataclass
from uuid import UUID

from src.application.errors import ListingNotFoundError
from src.application.interfaces.listing_repository import ListingRepository
from src.domain.entities.listing import Listing


@dataclass
class GetListingInput:
    listing_id: UUID


@dataclass
class GetListingOutput:
    listing: Listing


class GetListing:
    """Use case: fetch a single listing, with its owner summary, by id."""

    def __init__(self, listing_repo: ListingRepository) -> None:
        self._listing_repo = listing_repo

    async def execute(self, input_data: GetListingInput) -> GetListingOutput:
        listing = await self._listing_repo.get_by_id(input_data.listing_id)
        if listing is None:
            raise ListingNotFoundError(input_data.listing_id)
        return GetListingOutput(listing=listing)
