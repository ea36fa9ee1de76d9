import logging
from uuid import UUID

from fastapi import APIRouter, status

from eshop.schemas.basket import (
    BasketCheckoutRequest,
    CheckoutResult,
    CreateBasketRequest,
    ShoppingCartItemDto,
)
from eshop.schemas.response import SuccessResponse
from eshop.services.basket_service import (
    add_item,
    checkout_basket,
    create_basket,
    delete_basket,
    get_basket,
    remove_item,
)

router = APIRouter()
log = logging.getLogger(__name__)


@router.post("/checkout", response_model=CheckoutResult)
async def checkout_basket_endpoint(request_data: BasketCheckoutRequest):
    """
    Checks out the basket. The order is created asynchronously once the
    outbox dispatcher delivers the checkout event to Ordering.
    """
    result = await checkout_basket(request_data)
    if not result.is_success:
        log.error(f"Checkout for {request_data.user_name} did not complete.")
    return result


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_basket_endpoint(request_data: CreateBasketRequest):
    """Creates the user's basket, merging items into an existing one."""
    basket = await create_basket(request_data.user_name, request_data.items)
    return SuccessResponse(data=basket.model_dump(mode="json"))


@router.get("/{user_name}", response_model=SuccessResponse)
async def get_basket_endpoint(user_name: str):
    basket = await get_basket(user_name)
    return SuccessResponse(data=basket.model_dump(mode="json"))


@router.delete("/{user_name}", response_model=SuccessResponse)
async def delete_basket_endpoint(user_name: str):
    await delete_basket(user_name)
    return SuccessResponse(message=f"Basket of {user_name} deleted.")


@router.post("/{user_name}/items", response_model=SuccessResponse)
async def add_item_endpoint(user_name: str, item: ShoppingCartItemDto):
    basket = await add_item(user_name, item)
    return SuccessResponse(data=basket.model_dump(mode="json"))


@router.delete("/{user_name}/items/{product_id}", response_model=SuccessResponse)
async def remove_item_endpoint(user_name: str, product_id: UUID):
    basket = await remove_item(user_name, product_id)
    return SuccessResponse(data=basket.model_dump(mode="json"))
