from enum import Enum


class ListingLifecycleState(str, Enum):
    """Persisted states a listing moves through."""

    AVAILABLE = "AVAILABLE"
    UNAVAILABLE = "UNAVAILABLE"
    DELETED = "DELETED"

    @property
    def is_terminal(self) -> bool:
        """Terminal states cannot be transitioned out of."""
        return self is ListingLifecycleState.DELETED
