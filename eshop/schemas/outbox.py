import uuid
from typing import Optional

from pydantic import BaseModel


class OutboxMessageResponse(BaseModel):
    """Operator view of a dead-lettered outbox message."""
    id: uuid.UUID
    type: str
    content: str
    occurred_on: str
    attempts: int
    last_error: Optional[str] = None
    failed_on: Optional[str] = None
