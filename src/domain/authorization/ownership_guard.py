"""
Ownership / role authorization for listing operations.

Pure function of (actor, resource owner, operation); it reads no request
state. Admins may do anything. Agents may mutate only what they own, and
plain users are read-only.
"""
from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from src.domain.entities.actor import Actor
from src.domain.enums.actor_role import ActorRole


class ListingOperation(str, Enum):
    VIEW = "view"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    TOGGLE_AVAILABILITY = "toggle_availability"
    # Management views: an owner's own listings, or every listing.
    MANAGE = "manage"
    MANAGE_ALL = "manage_all"

    @property
    def is_privileged(self) -> bool:
        """Mutations and management views; only VIEW is open to every role."""
        return self is not ListingOperation.VIEW


class DenyReason(str, Enum):
    NOT_OWNER = "NotOwner"
    INSUFFICIENT_ROLE = "InsufficientRole"


@dataclass(frozen=True)
class AuthorizationDecision:
    allowed: bool
    reason: DenyReason | None = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = AuthorizationDecision(allowed=True)


def deny(reason: DenyReason) -> AuthorizationDecision:
    return AuthorizationDecision(allowed=False, reason=reason)


def authorize(
    actor: Actor, resource_owner_id: UUID | None, operation: ListingOperation
) -> AuthorizationDecision:
    """
    Decide whether ``actor`` may perform ``operation`` on a listing owned by
    ``resource_owner_id``.

    ``MANAGE_ALL`` (the cross-owner management view) has no single owner and
    is reserved for admins.
    """
    if actor.role is ActorRole.ADMIN:
        return ALLOW

    if not operation.is_privileged:
        return ALLOW

    if actor.role is not ActorRole.AGENT or operation is ListingOperation.MANAGE_ALL:
        return deny(DenyReason.INSUFFICIENT_ROLE)

    if resource_owner_id is None or actor.identity != resource_owner_id:
        return deny(DenyReason.NOT_OWNER)

    return ALLOW
