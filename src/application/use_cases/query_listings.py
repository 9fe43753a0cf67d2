from dataclasses import dataclass, replace

import structlog

from src.application.interfaces.listing_repository import ListingRepository
from src.application.use_cases.authorization import require_permission
from src.domain.authorization.ownership_guard import ListingOperation
from src.domain.entities.actor import Actor
from src.domain.entities.listing import Listing
from src.domain.query.filter_compiler import QueryScope, compile_filter
from src.domain.query.filter_spec import FilterSpecification

logger = structlog.get_logger(__name__)


@dataclass
class QueryListingsInput:
    filters: FilterSpecification
    scope: QueryScope = QueryScope.PUBLIC
    # Required for the management scope, ignored for public queries.
    actor: Actor | None = None


@dataclass
class QueryListingsOutput:
    listings: list[Listing]


class QueryListings:
    """
    Use case: search listings.

    Public queries only ever see available listings. Management queries see
    every listing: an agent's are limited to the listings they own, an
    admin's are unrestricted.
    """

    def __init__(self, listing_repo: ListingRepository) -> None:
        self._listing_repo = listing_repo

    def _management_filters(
        self, actor: Actor | None, filters: FilterSpecification
    ) -> FilterSpecification:
        if actor is None:
            raise ValueError("Management queries require an actor.")
        if filters.owner_id is None and not actor.is_admin:
            # An agent's management view defaults to their own listings.
            filters = replace(filters, owner_id=actor.identity)

        operation = (
            ListingOperation.MANAGE_ALL if filters.owner_id is None else ListingOperation.MANAGE
        )
        require_permission(actor, filters.owner_id, operation)
        return filters

    async def execute(self, input_data: QueryListingsInput) -> QueryListingsOutput:
        filters = input_data.filters
        if input_data.scope is QueryScope.MANAGEMENT:
            filters = self._management_filters(input_data.actor, filters)

        query = compile_filter(filters, input_data.scope)
        listings = await self._listing_repo.find(query)

        logger.debug(
            "listings_queried",
            scope=input_data.scope.value,
            clauses=len(query.predicate.clauses),
            results=len(listings),
        )
        return QueryListingsOutput(listings=listings)
