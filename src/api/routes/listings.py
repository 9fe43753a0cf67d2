import json
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from src.api.dependencies import (
    get_actor,
    get_create_listing_use_case,
    get_delete_listing_use_case,
    get_get_listing_use_case,
    get_query_listings_use_case,
    get_toggle_availability_use_case,
    get_update_listing_use_case,
)
from src.api.schemas.listing_schemas import DeleteListingResponse, ListingResponse
from src.application.errors import ListingValidationError
from src.application.interfaces.storage_backend import ImageUpload
from src.application.use_cases.authorization import require_permission
from src.application.use_cases.create_listing import CreateListing, CreateListingInput
from src.application.use_cases.delete_listing import DeleteListing, DeleteListingInput
from src.application.use_cases.get_listing import GetListing, GetListingInput
from src.application.use_cases.query_listings import QueryListings, QueryListingsInput
from src.application.use_cases.toggle_listing_availability import (
    ToggleListingAvailability,
    ToggleListingAvailabilityInput,
)
from src.application.use_cases.update_listing import UpdateListing, UpdateListingInput
from src.domain.authorization.ownership_guard import ListingOperation
from src.domain.entities.actor import Actor
from src.domain.query.filter_compiler import QueryScope
from src.domain.query.filter_spec import SortOrder, parse_filter_params

router = APIRouter(prefix="/api/properties", tags=["properties"])


async def _read_uploads(files: list[UploadFile] | None) -> list[ImageUpload]:
    uploads = []
    for file in files or []:
        # Browsers send an empty part when no file was picked
        if not file.filename and not file.size:
            continue
        uploads.append(
            ImageUpload(
                data=await file.read(),
                filename=file.filename,
                content_type=file.content_type,
            )
        )
    return uploads


def _parse_locator_list(raw: str | None) -> list[str]:
    if raw is None or not raw.strip():
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ListingValidationError("imagesToDelete: must be a JSON array of strings") from exc
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ListingValidationError("imagesToDelete: must be a JSON array of strings")
    return value


def _form_fields(**fields: str | None) -> dict[str, Any]:
    return {name: value for name, value in fields.items() if value is not None}


# ---- Queries ---------------------------------------------------------------

@router.get("", response_model=list[ListingResponse])
async def search_listings(
    search_term: str | None = Query(default=None, alias="searchTerm"),
    property_type: str | None = Query(default=None, alias="propertyType"),
    listing_status: str | None = Query(default=None, alias="status"),
    min_price: str | None = Query(default=None, alias="minPrice"),
    max_price: str | None = Query(default=None, alias="maxPrice"),
    bedrooms: str | None = Query(default=None),
    sort: str | None = Query(default=None, description=f"One of {[s.value for s in SortOrder]}"),
    agent_id: str | None = Query(default=None, alias="agentId"),
    limit: str | None = Query(default=None),
    use_case: QueryListings = Depends(get_query_listings_use_case),
) -> list[ListingResponse]:
    """Public search; only available listings are returned."""
    filters = parse_filter_params(
        {
            "searchTerm": search_term,
            "propertyType": property_type,
            "status": listing_status,
            "minPrice": min_price,
            "maxPrice": max_price,
            "bedrooms": bedrooms,
            "sort": sort,
            "agentId": agent_id,
            "limit": limit,
        }
    )
    result = await use_case.execute(QueryListingsInput(filters=filters))
    return [ListingResponse.from_listing(l) for l in result.listings]


@router.get("/all", response_model=list[ListingResponse])
async def list_all_listings(
    search_term: str | None = Query(default=None, alias="searchTerm"),
    listing_status: str | None = Query(default=None, alias="status"),
    availability: str | None = Query(default=None, description="all | available | unavailable"),
    actor: Actor = Depends(get_actor),
    use_case: QueryListings = Depends(get_query_listings_use_case),
) -> list[ListingResponse]:
    """Admin management view across every owner."""
    require_permission(actor, None, ListingOperation.MANAGE_ALL)
    filters = parse_filter_params(
        {"searchTerm": search_term, "status": listing_status, "availability": availability}
    )
    result = await use_case.execute(
        QueryListingsInput(filters=filters, scope=QueryScope.MANAGEMENT, actor=actor)
    )
    return [ListingResponse.from_listing(l) for l in result.listings]


@router.get("/my-listings", response_model=list[ListingResponse])
async def list_my_listings(
    actor: Actor = Depends(get_actor),
    use_case: QueryListings = Depends(get_query_listings_use_case),
) -> list[ListingResponse]:
    filters = parse_filter_params({"agentId": str(actor.identity)})
    result = await use_case.execute(
        QueryListingsInput(filters=filters, scope=QueryScope.MANAGEMENT, actor=actor)
    )
    return [ListingResponse.from_listing(l) for l in result.listings]


@router.get("/{listing_id}", response_model=ListingResponse)
async def get_listing(
    listing_id: UUID,
    use_case: GetListing = Depends(get_get_listing_use_case),
) -> ListingResponse:
    result = await use_case.execute(GetListingInput(listing_id=listing_id))
    return ListingResponse.from_listing(result.listing)


# ---- Mutations -------------------------------------------------------------

@router.post("", response_model=ListingResponse, status_code=status.HTTP_201_CREATED)
async def create_listing(
    title: str | None = Form(default=None),
    description: str | None = Form(default=None),
    address: str | None = Form(default=None),
    city: str | None = Form(default=None),
    state: str | None = Form(default=None),
    zip_code: str | None = Form(default=None, alias="zipCode"),
    price: str | None = Form(default=None),
    bedrooms: str | None = Form(default=None),
    bathrooms: str | None = Form(default=None),
    sqft: str | None = Form(default=None),
    latitude: str | None = Form(default=None),
    longitude: str | None = Form(default=None),
    property_type: str | None = Form(default=None, alias="propertyType"),
    listing_status: str | None = Form(default=None, alias="status"),
    images: list[UploadFile] | None = File(default=None),
    actor: Actor = Depends(get_actor),
    use_case: CreateListing = Depends(get_create_listing_use_case),
) -> ListingResponse:
    fields = _form_fields(
        title=title,
        description=description,
        address=address,
        city=city,
        state=state,
        zip_code=zip_code,
        price=price,
        bedrooms=bedrooms,
        bathrooms=bathrooms,
        sqft=sqft,
        latitude=latitude,
        longitude=longitude,
        property_type=property_type,
        status=listing_status,
    )
    result = await use_case.execute(
        CreateListingInput(actor=actor, fields=fields, images=await _read_uploads(images))
    )
    return ListingResponse.from_listing(result.listing)


@router.put("/{listing_id}", response_model=ListingResponse)
async def update_listing(
    listing_id: UUID,
    title: str | None = Form(default=None),
    description: str | None = Form(default=None),
    address: str | None = Form(default=None),
    city: str | None = Form(default=None),
    state: str | None = Form(default=None),
    zip_code: str | None = Form(default=None, alias="zipCode"),
    price: str | None = Form(default=None),
    bedrooms: str | None = Form(default=None),
    bathrooms: str | None = Form(default=None),
    sqft: str | None = Form(default=None),
    latitude: str | None = Form(default=None),
    longitude: str | None = Form(default=None),
    property_type: str | None = Form(default=None, alias="propertyType"),
    listing_status: str | None = Form(default=None, alias="status"),
    images_to_delete: str | None = Form(default=None, alias="imagesToDelete"),
    images: list[UploadFile] | None = File(default=None),
    actor: Actor = Depends(get_actor),
    use_case: UpdateListing = Depends(get_update_listing_use_case),
) -> ListingResponse:
    """Partial update; omitted fields keep their current values."""
    fields = _form_fields(
        title=title,
        description=description,
        address=address,
        city=city,
        state=state,
        zip_code=zip_code,
        price=price,
        bedrooms=bedrooms,
        bathrooms=bathrooms,
        sqft=sqft,
        latitude=latitude,
        longitude=longitude,
        property_type=property_type,
        status=listing_status,
    )
    result = await use_case.execute(
        UpdateListingInput(
            actor=actor,
            listing_id=listing_id,
            fields=fields,
            images_to_delete=_parse_locator_list(images_to_delete),
            new_images=await _read_uploads(images),
        )
    )
    return ListingResponse.from_listing(result.listing)


@router.delete("/{listing_id}", response_model=DeleteListingResponse)
async def delete_listing(
    listing_id: UUID,
    actor: Actor = Depends(get_actor),
    use_case: DeleteListing = Depends(get_delete_listing_use_case),
) -> DeleteListingResponse:
    result = await use_case.execute(DeleteListingInput(actor=actor, listing_id=listing_id))
    return DeleteListingResponse(id=result.listing_id)


@router.patch("/{listing_id}/toggle-availability", response_model=ListingResponse)
async def toggle_availability(
    listing_id: UUID,
    actor: Actor = Depends(get_actor),
    use_case: ToggleListingAvailability = Depends(get_toggle_availability_use_case),
) -> ListingResponse:
    result = await use_case.execute(
        ToggleListingAvailabilityInput(actor=actor, listing_id=listing_id)
    )
    return ListingResponse.from_listing(result.listing)
