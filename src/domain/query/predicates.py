"""
Structured listing predicates.

Repositories translate these into their own query language; ``matches``
evaluates the same predicate against an in-memory Listing.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from src.domain.entities.listing import Listing

# Fields the free-text term is matched against.
TEXT_SEARCH_FIELDS: tuple[str, ...] = ("title", "address", "city", "state")


class Predicate(ABC):
    @abstractmethod
    def matches(self, listing: Listing) -> bool:
        ...


@dataclass(frozen=True)
class FieldEquals(Predicate):
    field: str
    value: Any

    def matches(self, listing: Listing) -> bool:
        return getattr(listing, self.field) == self.value


@dataclass(frozen=True)
class FieldRange(Predicate):
    """Inclusive range; either bound may be None but never both."""

    field: str
    lower: Any = None
    upper: Any = None

    def __post_init__(self) -> None:
        if self.lower is None and self.upper is None:
            raise ValueError("FieldRange requires at least one bound.")

    def matches(self, listing: Listing) -> bool:
        value = getattr(listing, self.field)
        if self.lower is not None and value < self.lower:
            return False
        if self.upper is not None and value > self.upper:
            return False
        return True


@dataclass(frozen=True)
class TextContains(Predicate):
    """Case-insensitive, unanchored substring match on any of ``fields``."""

    term: str
    fields: tuple[str, ...] = TEXT_SEARCH_FIELDS

    def matches(self, listing: Listing) -> bool:
        needle = self.term.casefold()
        return any(needle in str(getattr(listing, f)).casefold() for f in self.fields)


@dataclass(frozen=True)
class AllOf(Predicate):
    """Conjunction; an empty conjunction matches everything."""

    clauses: tuple[Predicate, ...] = ()

    def matches(self, listing: Listing) -> bool:
        return all(clause.matches(listing) for clause in self.clauses)
