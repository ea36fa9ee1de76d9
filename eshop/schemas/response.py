from pydantic import BaseModel, Field
from typing import Any, Optional
import uuid


def _trace_id():
    return uuid.uuid4().hex


class SuccessResponse(BaseModel):
    """Envelope for successful responses; errors use problem details instead."""
    success: bool = True
    trace_id: str = Field(default_factory=_trace_id)
    message: Optional[str] = None
    data: Optional[Any] = None
