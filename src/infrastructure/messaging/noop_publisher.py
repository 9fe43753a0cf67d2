"""
Event publisher used when no RABBITMQ_URL is configured.
"""
import structlog

from src.application.interfaces.event_publisher import EventPublisher
from src.domain.events.domain_events import DomainEvent

logger = structlog.get_logger(__name__)


class NoOpEventPublisher(EventPublisher):
    """Logs and drops every event."""

    async def publish(self, event: DomainEvent) -> None:
        logger.debug("event_dropped", event_type=type(event).__name__, event_id=str(event.event_id))
