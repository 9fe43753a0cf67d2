from uuid import UUID

from src.domain.authorization.ownership_guard import DenyReason, ListingOperation


class ListingError(Exception):
    """Base exception for listing operations."""


class ListingValidationError(ListingError):
    """Rejected input. Raised before any storage or persistence call."""

    def __init__(self, messages: list[str] | str) -> None:
        self.messages = [messages] if isinstance(messages, str) else list(messages)
        super().__init__("; ".join(self.messages))


class ListingNotFoundError(ListingError):
    def __init__(self, listing_id: UUID) -> None:
        self.listing_id = listing_id
        super().__init__(f"Listing {listing_id} not found.")


class ListingForbiddenError(ListingError):
    """The listing exists but the actor may not perform the operation."""

    def __init__(self, operation: ListingOperation, reason: DenyReason) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"Not permitted to {operation.value} listing: {reason.value}")


class ImageUploadError(ListingError):
    """An image could not be stored; fatal to the create or update that needed it."""


class ListingPersistenceError(ListingError):
    """The listing store could not be reached or refused the write."""
