"""Store orders router: checkout and order history."""

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from services.store_service.dependencies import get_order_reader, get_order_writer
from services.store_service.schemas import (
    OrderCreateRequest,
    OrderCreateResponse,
    OrderDetailResponse,
    OrderListResponse,
)
from services.store_service.services.order_reader import OrderReader
from services.store_service.services.order_writer import OrderWriter

router = APIRouter(prefix="/orders", tags=["store"])


@router.post(
    "",
    response_model=OrderCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_order(
    request: OrderCreateRequest,
    current_user: AuthUser = Depends(get_current_user),
    writer: OrderWriter = Depends(get_order_writer),
):
    """Place an order for the current user."""
    order_id = await writer.create_order(
        current_user, request.address_id, request.items
    )
    return OrderCreateResponse(order_id=order_id)


@router.get("", response_model=OrderListResponse)
async def list_my_orders(
    current_user: AuthUser = Depends(get_current_user),
    reader: OrderReader = Depends(get_order_reader),
):
    """List the current user's orders, newest first."""
    orders = await reader.list_orders(current_user)
    return OrderListResponse(orders=orders, total=len(orders))


@router.get("/{order_id}", response_model=OrderDetailResponse)
async def get_order(
    order_id: str,
    current_user: AuthUser = Depends(get_current_user),
    reader: OrderReader = Depends(get_order_reader),
):
    """Get one of the current user's orders."""
    return OrderDetailResponse(order=await reader.get_order(order_id, current_user))
