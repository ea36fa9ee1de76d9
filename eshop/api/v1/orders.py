from uuid import UUID

from fastapi import APIRouter

from eshop.schemas.response import SuccessResponse
from eshop.services.order_service import get_order, get_orders_by_customer, to_order_response

router = APIRouter()


@router.get("/{order_id}", response_model=SuccessResponse)
async def get_order_endpoint(order_id: UUID):
    """Fetches details for a specific order."""
    order = await get_order(order_id)
    return SuccessResponse(data=to_order_response(order).model_dump(mode="json"))


@router.get("/", response_model=SuccessResponse)
async def list_customer_orders_endpoint(customer_id: UUID):
    """Lists a customer's orders, newest first."""
    orders = await get_orders_by_customer(customer_id)
    return SuccessResponse(data=[to_order_response(o).model_dump(mode="json") for o in orders])
