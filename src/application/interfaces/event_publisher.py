from abc import ABC, abstractmethod
from collections.abc import Sequence

from src.domain.events.domain_events import DomainEvent


class EventPublisher(ABC):
    """Port for publishing listing domain events to the message bus."""

    @abstractmethod
    async def publish(self, event: DomainEvent) -> None:
        """Implementations must not raise: a lost event never fails a request."""
        ...

    async def publish_many(self, events: Sequence[DomainEvent]) -> None:
        for event in events:
            await self.publish(event)
