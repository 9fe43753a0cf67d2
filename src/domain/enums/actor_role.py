from enum import Enum


class ActorRole(str, Enum):
    """Roles supplied by the authentication collaborator."""

    USER = "user"
    AGENT = "agent"
    ADMIN = "admin"
