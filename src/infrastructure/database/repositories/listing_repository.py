from uuid import UUID

from sqlalchemy import ColumnElement, and_, or_, select, true
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.application.errors import ListingPersistenceError
from src.application.interfaces.listing_repository import ListingRepository
from src.domain.entities.actor import OwnerSummary
from src.domain.entities.listing import Listing
from src.domain.query.filter_compiler import CompiledQuery, SortSpec
from src.domain.query.predicates import (
    AllOf,
    FieldEquals,
    FieldRange,
    Predicate,
    TextContains,
)
from src.infrastructure.database.models import ListingModel

# Listing attributes that predicates and sort specs may refer to.
_COLUMNS = {
    "title": ListingModel.title,
    "address": ListingModel.address,
    "city": ListingModel.city,
    "state": ListingModel.state,
    "price": ListingModel.price,
    "bedrooms": ListingModel.bedrooms,
    "property_type": ListingModel.property_type,
    "status": ListingModel.status,
    "owner_id": ListingModel.owner_id,
    "is_available": ListingModel.is_available,
    "created_at": ListingModel.created_at,
}


def _column(name: str):  # type: ignore[no-untyped-def]
    try:
        return _COLUMNS[name]
    except KeyError:
        raise ValueError(f"Listings cannot be filtered or sorted by {name!r}") from None


def _to_clause(predicate: Predicate) -> ColumnElement[bool]:
    if isinstance(predicate, AllOf):
        return and_(true(), *(_to_clause(clause) for clause in predicate.clauses))
    if isinstance(predicate, FieldEquals):
        return _column(predicate.field) == predicate.value
    if isinstance(predicate, FieldRange):
        column = _column(predicate.field)
        bounds = []
        if predicate.lower is not None:
            bounds.append(column >= predicate.lower)
        if predicate.upper is not None:
            bounds.append(column <= predicate.upper)
        return and_(*bounds)
    if isinstance(predicate, TextContains):
        return or_(
            *(_column(name).icontains(predicate.term, autoescape=True) for name in predicate.fields)
        )
    raise TypeError(f"Unsupported predicate: {type(predicate).__name__}")


def _order_by(sort: SortSpec) -> list:  # type: ignore[type-arg]
    column = _column(sort.field)
    primary = column.desc() if sort.descending else column.asc()
    # Stable order for equal prices / timestamps
    return [primary, ListingModel.created_at.desc(), ListingModel.id.asc()]


def _to_domain(model: ListingModel) -> Listing:
    owner = model.__dict__.get("owner")
    return Listing(
        id=model.id,
        owner_id=model.owner_id,
        title=model.title,
        description=model.description,
        address=model.address,
        city=model.city,
        state=model.state,
        zip_code=model.zip_code,
        price=model.price,
        bedrooms=model.bedrooms,
        bathrooms=model.bathrooms,
        sqft=model.sqft,
        latitude=model.latitude,
        longitude=model.longitude,
        property_type=model.property_type,
        status=model.status,
        is_available=model.is_available,
        images=list(model.images or []),
        created_at=model.created_at,
        updated_at=model.updated_at,
        owner=(
            OwnerSummary(id=owner.id, name=owner.name, email=owner.email)
            if owner is not None
            else None
        ),
    )


def _copy_to_model(listing: Listing, model: ListingModel) -> None:
    model.title = listing.title
    model.description = listing.description
    model.address = listing.address
    model.city = listing.city
    model.state = listing.state
    model.zip_code = listing.zip_code
    model.price = listing.price
    model.bedrooms = listing.bedrooms
    model.bathrooms = listing.bathrooms
    model.sqft = listing.sqft
    model.latitude = listing.latitude
    model.longitude = listing.longitude
    model.property_type = listing.property_type
    model.status = listing.status
    model.is_available = listing.is_available
    model.images = list(listing.images)
    model.updated_at = listing.updated_at


class SqlAlchemyListingRepository(ListingRepository):
    """SQLAlchemy implementation for listing persistence."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def save(self, listing: Listing) -> None:
        try:
            model = await self._session.get(ListingModel, listing.id)
            if model is None:
                model = ListingModel(
                    id=listing.id,
                    owner_id=listing.owner_id,
                    created_at=listing.created_at,
                )
                self._session.add(model)
            _copy_to_model(listing, model)
            await self._session.flush()
        except SQLAlchemyError as exc:
            raise ListingPersistenceError(f"Failed to save listing {listing.id}: {exc}") from exc

    async def get_by_id(self, listing_id: UUID) -> Listing | None:
        try:
            model = await self._session.get(
                ListingModel, listing_id, options=[selectinload(ListingModel.owner)]
            )
        except SQLAlchemyError as exc:
            raise ListingPersistenceError(f"Failed to load listing {listing_id}: {exc}") from exc
        return _to_domain(model) if model is not None else None

    async def delete(self, listing_id: UUID) -> None:
        try:
            model = await self._session.get(ListingModel, listing_id)
            if model is not None:
                await self._session.delete(model)
                await self._session.flush()
        except SQLAlchemyError as exc:
            raise ListingPersistenceError(f"Failed to delete listing {listing_id}: {exc}") from exc

    async def commit(self) -> None:
        try:
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            raise ListingPersistenceError(f"Failed to commit listing changes: {exc}") from exc

    async def find(self, query: CompiledQuery) -> list[Listing]:
        statement = (
            select(ListingModel)
            .options(selectinload(ListingModel.owner))
            .where(_to_clause(query.predicate))
            .order_by(*_order_by(query.sort))
        )
        if query.limit is not None:
            statement = statement.limit(query.limit)

        try:
            result = await self._session.execute(statement)
        except SQLAlchemyError as exc:
            raise ListingPersistenceError(f"Failed to query listings: {exc}") from exc
        return [_to_domain(m) for m in result.scalars().all()]
