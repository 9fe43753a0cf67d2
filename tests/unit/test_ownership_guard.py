"""Unit tests for the ownership / role authorization guard."""
from uuid import uuid4

import pytest

from src.domain.authorization.ownership_guard import (
    DenyReason,
    ListingOperation,
    authorize,
)
from src.domain.entities.actor import Actor
from src.domain.enums.actor_role import ActorRole

MUTATIONS = [
    ListingOperation.UPDATE,
    ListingOperation.DELETE,
    ListingOperation.TOGGLE_AVAILABILITY,
]


def _actor(role: ActorRole) -> Actor:
    return Actor(identity=uuid4(), role=role)


class TestAdmin:
    @pytest.mark.parametrize("operation", list(ListingOperation))
    def test_admin_allowed_everything(self, operation: ListingOperation) -> None:
        assert authorize(_actor(ActorRole.ADMIN), uuid4(), operation).allowed is True

    def test_admin_allowed_without_owner(self) -> None:
        assert authorize(_actor(ActorRole.ADMIN), None, ListingOperation.MANAGE_ALL)


class TestAgent:
    @pytest.mark.parametrize("operation", MUTATIONS)
    def test_owner_allowed(self, operation: ListingOperation) -> None:
        agent = _actor(ActorRole.AGENT)
        assert authorize(agent, agent.identity, operation).allowed is True

    @pytest.mark.parametrize("operation", MUTATIONS)
    def test_non_owner_denied(self, operation: ListingOperation) -> None:
        decision = authorize(_actor(ActorRole.AGENT), uuid4(), operation)
        assert decision.allowed is False
        assert decision.reason is DenyReason.NOT_OWNER

    def test_create_for_self_allowed(self) -> None:
        agent = _actor(ActorRole.AGENT)
        assert authorize(agent, agent.identity, ListingOperation.CREATE)

    def test_manage_own_listings_allowed(self) -> None:
        agent = _actor(ActorRole.AGENT)
        assert authorize(agent, agent.identity, ListingOperation.MANAGE)

    def test_manage_all_denied(self) -> None:
        decision = authorize(_actor(ActorRole.AGENT), None, ListingOperation.MANAGE_ALL)
        assert decision.reason is DenyReason.INSUFFICIENT_ROLE

    def test_missing_owner_denied(self) -> None:
        decision = authorize(_actor(ActorRole.AGENT), None, ListingOperation.UPDATE)
        assert decision.reason is DenyReason.NOT_OWNER


class TestUser:
    @pytest.mark.parametrize("operation", MUTATIONS + [ListingOperation.CREATE])
    def test_user_cannot_mutate(self, operation: ListingOperation) -> None:
        user = _actor(ActorRole.USER)
        # Even on a resource that somehow carries the user's own identity
        decision = authorize(user, user.identity, operation)
        assert decision.allowed is False
        assert decision.reason is DenyReason.INSUFFICIENT_ROLE

    def test_user_can_view(self) -> None:
        assert authorize(_actor(ActorRole.USER), uuid4(), ListingOperation.VIEW)


def test_decision_is_falsy_when_denied() -> None:
    assert not authorize(_actor(ActorRole.USER), uuid4(), ListingOperation.DELETE)
