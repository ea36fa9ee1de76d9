from tortoise import fields, models
import uuid


class OutboxMessage(models.Model):
    """
    The Outbox table stores integration events atomically with the business
    change they describe. This is the core of the Transactional Outbox Pattern.

    processed_on is NULL while the message is pending. failed_on is set once
    the message exhausts its delivery attempts and is dead-lettered.
    """
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    type = fields.CharField(max_length=255) # e.g., 'basket.checkout.v1'
    content = fields.TextField() # Serialized JSON of the integration event
    occurred_on = fields.DatetimeField(auto_now_add=True)
    processed_on = fields.DatetimeField(null=True)
    attempts = fields.IntField(default=0)
    last_error = fields.TextField(null=True)
    failed_on = fields.DatetimeField(null=True)

    class Meta:
        table = "outbox_messages"
        indexes = [
            ("processed_on", "failed_on", "occurred_on"),  # Pending scan
        ]

    @property
    def is_pending(self) -> bool:
        return self.processed_on is None and self.failed_on is None
