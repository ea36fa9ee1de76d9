from tortoise import fields, models
import uuid


class Product(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    name = fields.CharField(max_length=255)
    category = fields.JSONField(default=list) # List of category names
    description = fields.TextField(default="")
    image_file = fields.CharField(max_length=255, default="")
    price = fields.DecimalField(max_digits=12, decimal_places=2)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "products"
        indexes = [
            ("name",),
        ]
