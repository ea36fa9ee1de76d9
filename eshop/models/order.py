from tortoise import fields, models
import uuid


class Order(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    customer_id = fields.UUIDField()
    order_name = fields.CharField(max_length=128)

    # Shipping address
    shipping_first_name = fields.CharField(max_length=64)
    shipping_last_name = fields.CharField(max_length=64)
    shipping_email_address = fields.CharField(max_length=255)
    shipping_address_line = fields.CharField(max_length=255)
    shipping_country = fields.CharField(max_length=64)
    shipping_state = fields.CharField(max_length=64)
    shipping_zip_code = fields.CharField(max_length=16)

    # Billing address
    billing_first_name = fields.CharField(max_length=64)
    billing_last_name = fields.CharField(max_length=64)
    billing_email_address = fields.CharField(max_length=255)
    billing_address_line = fields.CharField(max_length=255)
    billing_country = fields.CharField(max_length=64)
    billing_state = fields.CharField(max_length=64)
    billing_zip_code = fields.CharField(max_length=16)

    # Payment
    card_name = fields.CharField(max_length=64)
    card_number = fields.CharField(max_length=32)
    expiration = fields.CharField(max_length=8)
    cvv = fields.CharField(max_length=4)
    payment_method = fields.IntField(default=1)

    total_price = fields.DecimalField(max_digits=14, decimal_places=2, default=0)
    created_at = fields.DatetimeField(auto_now_add=True)

    items: fields.ReverseRelation["OrderItem"]

    class Meta:
        table = "orders"
        indexes = [
            ("customer_id",),            # Customer order history
            ("created_at",),             # Time-based queries
        ]


class OrderItem(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    order = fields.ForeignKeyField("models.Order", related_name="items", on_delete=fields.CASCADE)
    product_id = fields.UUIDField()
    quantity = fields.IntField()
    price = fields.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        table = "order_items"
        indexes = [
            ("order_id",),              # Order line items
            ("product_id",),            # Product popularity
        ]
