"""
Validation of the scalar listing fields received with a create or update.

Values usually arrive as multipart form strings, so pydantic's lax coercion
("3" → 3, "450000" → Decimal) does the typing. Validation errors become
ListingValidationError before any storage or persistence call is made.
"""
from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.application.errors import ListingValidationError
from src.application.interfaces.storage_backend import ImageUpload
from src.domain.entities.listing import MAX_COUNT
from src.domain.enums.property_type import ListingStatus, PropertyType

# Form field name → Listing attribute name, for the fields whose names differ.
FORM_ALIASES: dict[str, str] = {"zipCode": "zip_code", "propertyType": "property_type"}


class ListingFields(BaseModel):
    """Every field required to create a listing."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    title: str = Field(min_length=1, max_length=512)
    description: str = Field(min_length=1)
    address: str = Field(min_length=1, max_length=512)
    city: str = Field(min_length=1, max_length=128)
    state: str = Field(min_length=1, max_length=128)
    zip_code: str = Field(min_length=1, max_length=32)
    price: Decimal = Field(ge=0, max_digits=14, decimal_places=2)
    bedrooms: int = Field(ge=0, le=MAX_COUNT)
    bathrooms: int = Field(ge=0, le=MAX_COUNT)
    sqft: int = Field(ge=0, le=MAX_COUNT)
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    property_type: PropertyType
    status: ListingStatus


class ListingFieldsPatch(BaseModel):
    """Partial update: only fields present in the request are applied."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    title: str | None = Field(default=None, min_length=1, max_length=512)
    description: str | None = Field(default=None, min_length=1)
    address: str | None = Field(default=None, min_length=1, max_length=512)
    city: str | None = Field(default=None, min_length=1, max_length=128)
    state: str | None = Field(default=None, min_length=1, max_length=128)
    zip_code: str | None = Field(default=None, min_length=1, max_length=32)
    price: Decimal | None = Field(default=None, ge=0, max_digits=14, decimal_places=2)
    bedrooms: int | None = Field(default=None, ge=0, le=MAX_COUNT)
    bathrooms: int | None = Field(default=None, ge=0, le=MAX_COUNT)
    sqft: int | None = Field(default=None, ge=0, le=MAX_COUNT)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    property_type: PropertyType | None = None
    status: ListingStatus | None = None


def _normalise(raw: Mapping[str, Any]) -> dict[str, Any]:
    data: dict[str, Any] = {}
    for key, value in raw.items():
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        data[FORM_ALIASES.get(key, key)] = value
    return data


def _messages(exc: ValidationError) -> list[str]:
    return [
        f"{'.'.join(str(part) for part in error['loc']) or 'body'}: {error['msg']}"
        for error in exc.errors()
    ]


def parse_listing_fields(raw: Mapping[str, Any]) -> ListingFields:
    try:
        return ListingFields.model_validate(_normalise(raw))
    except ValidationError as exc:
        raise ListingValidationError(_messages(exc)) from exc


def parse_listing_patch(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Return only the supplied, valid fields; omitted or blank ones are left out."""
    try:
        patch = ListingFieldsPatch.model_validate(_normalise(raw))
    except ValidationError as exc:
        raise ListingValidationError(_messages(exc)) from exc
    return patch.model_dump(exclude_unset=True, exclude_none=True)


def check_image_uploads(uploads: Sequence[ImageUpload], *, max_count: int) -> None:
    """Reject oversized batches, empty buffers and non-image content types."""
    problems: list[str] = []
    if len(uploads) > max_count:
        problems.append(f"images: at most {max_count} files may be uploaded at once")
    for index, upload in enumerate(uploads, start=1):
        label = upload.filename or f"#{index}"
        if not upload.data:
            problems.append(f"images: file {label} is empty")
        if upload.content_type and not upload.content_type.startswith("image/"):
            problems.append(f"images: file {label} is not an image ({upload.content_type})")
    if problems:
        raise ListingValidationError(problems)
