from uuid import UUID

from fastapi import APIRouter

from eshop.models.outbox import OutboxMessage
from eshop.schemas.outbox import OutboxMessageResponse
from eshop.schemas.response import SuccessResponse
from eshop.services.outbox_service import get_failed_messages, requeue_message

router = APIRouter()


def _message_data(message: OutboxMessage) -> dict:
    return OutboxMessageResponse(
        id=message.id,
        type=message.type,
        content=message.content,
        occurred_on=str(message.occurred_on),
        attempts=message.attempts,
        last_error=message.last_error,
        failed_on=str(message.failed_on) if message.failed_on else None,
    ).model_dump(mode="json")


@router.get("/failed", response_model=SuccessResponse)
async def list_failed_messages_endpoint():
    """Lists dead-lettered messages for operator inspection."""
    messages = await get_failed_messages()
    return SuccessResponse(data=[_message_data(m) for m in messages])


@router.post("/{message_id}/requeue", response_model=SuccessResponse)
async def requeue_message_endpoint(message_id: UUID):
    """Puts a dead-lettered message back in the dispatch queue."""
    message = await requeue_message(message_id)
    return SuccessResponse(data=_message_data(message), message="Message requeued.")
