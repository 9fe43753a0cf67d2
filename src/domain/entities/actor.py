from dataclasses import dataclass
from uuid import UUID

from src.domain.enums.actor_role import ActorRole


@dataclass(frozen=True)
class Actor:
    """The authenticated caller, supplied per request by the auth collaborator."""

    identity: UUID
    role: ActorRole

    @property
    def is_admin(self) -> bool:
        return self.role is ActorRole.ADMIN


@dataclass(frozen=True)
class OwnerSummary:
    """Public profile of a listing's owner embedded in read results."""

    id: UUID
    name: str
    email: str
