from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_serializer
from pydantic.alias_generators import to_camel

from src.domain.entities.listing import Listing
from src.domain.enums.property_type import ListingStatus, PropertyType


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class OwnerSummaryResponse(_CamelModel):
    id: UUID
    name: str
    email: str


class ListingResponse(_CamelModel):
    id: UUID
    owner_id: UUID
    owner: OwnerSummaryResponse | None = None
    title: str
    description: str
    address: str
    city: str
    state: str
    zip_code: str
    price: Decimal
    bedrooms: int
    bathrooms: int
    sqft: int
    latitude: float
    longitude: float
    property_type: PropertyType
    status: ListingStatus
    is_available: bool
    images: list[str]
    created_at: datetime
    updated_at: datetime

    @field_serializer("price")
    def _price_as_number(self, price: Decimal) -> float:
        return float(price)

    @classmethod
    def from_listing(cls, listing: Listing) -> "ListingResponse":
        return cls.model_validate(listing)


class DeleteListingResponse(_CamelModel):
    id: UUID
    message: str = "Listing removed"


class ErrorResponse(BaseModel):
    detail: str | list[str]
    reason: str | None = None
