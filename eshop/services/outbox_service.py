"""Operator-facing maintenance of the outbox table: dead letters and retention."""
import logging
from datetime import timedelta
from typing import List
from uuid import UUID

from tortoise import timezone

from eshop.core.exceptions import BadRequestError, OutboxMessageNotFoundError
from eshop.models.outbox import OutboxMessage

log = logging.getLogger(__name__)


async def get_failed_messages() -> List[OutboxMessage]:
    return await OutboxMessage.filter(failed_on__isnull=False).order_by("occurred_on")


async def requeue_message(message_id: UUID) -> OutboxMessage:
    """Moves a dead-lettered (or stuck) message back to PENDING with a fresh attempt budget."""
    message = await OutboxMessage.get_or_none(id=message_id)
    if not message:
        raise OutboxMessageNotFoundError(message_id)
    if message.processed_on is not None:
        raise BadRequestError(f"Outbox message {message_id} was already processed.")

    message.failed_on = None
    message.attempts = 0
    message.last_error = None
    await message.save(update_fields=["failed_on", "attempts", "last_error"])
    log.info(f"Outbox message {message_id} ({message.type}) requeued.")
    return message


async def purge_processed_messages(older_than: timedelta) -> int:
    """Deletes PROCESSED messages delivered before now - older_than."""
    cutoff = timezone.now() - older_than
    deleted = await OutboxMessage.filter(processed_on__isnull=False, processed_on__lt=cutoff).delete()
    if deleted:
        log.info(f"Purged {deleted} processed outbox message(s) older than {cutoff}.")
    return deleted
