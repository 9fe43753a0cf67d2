from uuid import UUID

import structlog

from src.application.errors import ListingForbiddenError
from src.domain.authorization.ownership_guard import ListingOperation, authorize
from src.domain.entities.actor import Actor

logger = structlog.get_logger(__name__)


def require_permission(
    actor: Actor, resource_owner_id: UUID | None, operation: ListingOperation
) -> None:
    """Raise ListingForbiddenError unless the ownership guard allows the operation."""
    decision = authorize(actor, resource_owner_id, operation)
    if decision.allowed:
        return

    logger.info(
        "listing_access_denied",
        actor_id=str(actor.identity),
        role=actor.role.value,
        operation=operation.value,
        owner_id=str(resource_owner_id) if resource_owner_id else None,
        reason=decision.reason.value if decision.reason else None,
    )
    raise ListingForbiddenError(operation, decision.reason)  # type: ignore[arg-type]


def actor_label(actor: Actor) -> str:
    """Value recorded as ``triggered_by`` on domain events."""
    return f"{actor.role.value}:{actor.identity}"
