from tortoise import fields, models
import uuid


class ProcessedEvent(models.Model):
    """
    Table used for Idempotency in Consumers. Stores the integration event ID
    per consumer so a redelivered event is applied only once.
    """
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    event_id = fields.CharField(max_length=128)
    consumer = fields.CharField(max_length=128)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "processed_events"
        unique_together = (("event_id", "consumer"),)
