from decimal import Decimal
from tortoise import fields, models
import uuid


class ShoppingCart(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    user_name = fields.CharField(max_length=128, unique=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    items: fields.ReverseRelation["ShoppingCartItem"]

    class Meta:
        table = "shopping_carts"

    def total_price(self) -> Decimal:
        """Sum of price x quantity over the prefetched items."""
        return sum((item.line_total for item in self.items), Decimal("0"))


class ShoppingCartItem(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    shopping_cart = fields.ForeignKeyField(
        "models.ShoppingCart", related_name="items", on_delete=fields.CASCADE
    )
    product_id = fields.UUIDField()
    quantity = fields.IntField()
    color = fields.CharField(max_length=64, default="")
    # Copied from Catalog at the time the item was added
    price = fields.DecimalField(max_digits=12, decimal_places=2)
    product_name = fields.CharField(max_length=255, default="")
    # occurred_on of the last catalog price change applied to this line
    price_changed_on = fields.DatetimeField(null=True)

    class Meta:
        table = "shopping_cart_items"
        indexes = [
            ("product_id",),  # Price updates from Catalog
        ]

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity
