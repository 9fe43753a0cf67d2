"""
Filter-to-query compiler.

Pure and deterministic: identical FilterSpecification + scope always yields
an equal (and hashable) CompiledQuery.
"""
from dataclasses import dataclass
from enum import Enum

from src.domain.query.filter_spec import FilterSpecification, SortOrder
from src.domain.query.predicates import (
    AllOf,
    FieldEquals,
    FieldRange,
    Predicate,
    TextContains,
)


class QueryScope(str, Enum):
    """PUBLIC hides unavailable listings; MANAGEMENT (owner/admin views) does not."""

    PUBLIC = "public"
    MANAGEMENT = "management"


@dataclass(frozen=True)
class SortSpec:
    field: str
    descending: bool


@dataclass(frozen=True)
class CompiledQuery:
    predicate: AllOf
    sort: SortSpec
    limit: int | None = None


SORT_SPECS: dict[SortOrder, SortSpec] = {
    SortOrder.NEWEST: SortSpec(field="created_at", descending=True),
    SortOrder.PRICE_ASC: SortSpec(field="price", descending=False),
    SortOrder.PRICE_DESC: SortSpec(field="price", descending=True),
}


def compile_filter(
    spec: FilterSpecification, scope: QueryScope = QueryScope.PUBLIC
) -> CompiledQuery:
    clauses: list[Predicate] = []

    if spec.search_term:
        clauses.append(TextContains(term=spec.search_term))
    if spec.property_type is not None:
        clauses.append(FieldEquals("property_type", spec.property_type))
    if spec.status is not None:
        clauses.append(FieldEquals("status", spec.status))
    if spec.min_price is not None or spec.max_price is not None:
        clauses.append(FieldRange("price", lower=spec.min_price, upper=spec.max_price))
    if spec.min_bedrooms is not None:
        clauses.append(FieldRange("bedrooms", lower=spec.min_bedrooms))
    if spec.owner_id is not None:
        clauses.append(FieldEquals("owner_id", spec.owner_id))

    if scope is QueryScope.PUBLIC:
        clauses.append(FieldEquals("is_available", True))
    elif spec.available is not None:
        clauses.append(FieldEquals("is_available", spec.available))

    return CompiledQuery(
        predicate=AllOf(tuple(clauses)),
        sort=SORT_SPECS.get(spec.sort, SORT_SPECS[SortOrder.NEWEST]),
        limit=spec.limit,
    )
