# eshop/models/__init__.py
from .basket import ShoppingCart, ShoppingCartItem
from .catalog import Product
from .order import Order, OrderItem
from .outbox import OutboxMessage
from .processed_event import ProcessedEvent

# Export all models
__all__ = [
    "Order",
    "OrderItem",
    "OutboxMessage",
    "ProcessedEvent",
    "Product",
    "ShoppingCart",
    "ShoppingCartItem",
]
