from tortoise.transactions import in_transaction
from typing import Any, List
from decimal import Decimal
from uuid import UUID
import logging

from eshop.core.exceptions import OrderNotFoundError
from eshop.models.order import Order, OrderItem
from eshop.schemas.order import AddressDto, CreateOrderCommand, OrderItemDto, OrderResponse, PaymentDto

log = logging.getLogger(__name__)


def _address_fields(prefix: str, address: AddressDto) -> dict:
    return {f"{prefix}_{name}": value for name, value in address.model_dump().items()}


async def _create_order(command: CreateOrderCommand, conn: Any) -> Order:
    # Items for the same product are merged into one line
    lines = {}
    for item in command.items:
        line = lines.get(item.product_id)
        if line:
            line["quantity"] += item.quantity
        else:
            lines[item.product_id] = {"quantity": item.quantity, "price": item.price}

    total = sum((line["price"] * line["quantity"] for line in lines.values()), Decimal("0"))

    order = await Order.create(
        customer_id=command.customer_id,
        order_name=command.order_name,
        **_address_fields("shipping", command.shipping_address),
        **_address_fields("billing", command.billing_address),
        **command.payment.model_dump(),
        total_price=total,
        using_db=conn,
    )

    for product_id, line in lines.items():
        await OrderItem.create(
            order=order,
            product_id=product_id,
            quantity=line["quantity"],
            price=line["price"],
            using_db=conn,
        )
    return order


async def create_order(command: CreateOrderCommand, conn: Any = None) -> Order:
    """
    Creates an Order with its items. Runs on the caller's connection when one
    is given so the caller can commit the order together with its own writes.
    """
    if conn is not None:
        order = await _create_order(command, conn)
    else:
        async with in_transaction() as own_conn:
            order = await _create_order(command, own_conn)

    log.info(f"Order {order.id} created for customer {command.customer_id} (total {order.total_price}).")
    return order


async def get_order(order_id: UUID) -> Order:
    """Fetches an order with its items."""
    order = await Order.get_or_none(id=order_id).prefetch_related("items")
    if not order:
        raise OrderNotFoundError(order_id)
    return order


async def get_orders_by_customer(customer_id: UUID) -> List[Order]:
    return await Order.filter(customer_id=customer_id).order_by("-created_at").prefetch_related("items")


def _address(order: Order, prefix: str) -> AddressDto:
    return AddressDto(**{name: getattr(order, f"{prefix}_{name}") for name in AddressDto.model_fields})


def to_order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        id=order.id,
        customer_id=order.customer_id,
        order_name=order.order_name,
        shipping_address=_address(order, "shipping"),
        billing_address=_address(order, "billing"),
        payment=PaymentDto(**{name: getattr(order, name) for name in PaymentDto.model_fields}),
        items=[
            OrderItemDto(product_id=item.product_id, quantity=item.quantity, price=item.price)
            for item in order.items
        ],
        total_price=order.total_price,
        created_at=str(order.created_at),
    )
