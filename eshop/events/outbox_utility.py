from typing import Any, List

from tortoise import timezone

from eshop.events.integration_events import IntegrationEvent
from eshop.events.registry import serialize_event
from eshop.models.outbox import OutboxMessage


async def create_outbox_message(event: IntegrationEvent, conn: Any = None) -> OutboxMessage:
    """
    Creates a new Outbox message record using the provided database connection (transaction).

    CRITICAL: Passing 'conn' ensures the message is created atomically with the business data.
    """
    return await OutboxMessage.create(
        id=event.event_id,
        type=event.event_type,
        content=serialize_event(event),
        occurred_on=event.occurred_on,
        using_db=conn,
    )


async def get_pending_messages(limit: int) -> List[OutboxMessage]:
    """Pending messages, oldest first."""
    return await (
        OutboxMessage.filter(processed_on__isnull=True, failed_on__isnull=True)
        .order_by("occurred_on")
        .limit(limit)
    )


def mark_processed(message: OutboxMessage) -> None:
    message.processed_on = timezone.now()
    message.last_error = None


def record_failure(message: OutboxMessage, error: Exception, max_attempts: int) -> bool:
    """Counts a failed delivery attempt. Returns True once the message is dead-lettered."""
    message.attempts += 1
    message.last_error = f"{type(error).__name__}: {error}"[:2000]
    if message.attempts >= max_attempts:
        message.failed_on = timezone.now()
        return True
    return False
