import logging

from fastapi import APIRouter, Depends, Path

from walletapi.core.auth_middleware import get_current_active_user
from walletapi.deps import get_order_service
from walletapi.schemas.base import BaseResponse
from walletapi.schemas.order import OrderCreate, OrderStatusUpdate
from walletapi.schemas.user import User as UserSchema
from walletapi.services.order_service import OrderService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", response_model=BaseResponse, status_code=201)
async def create_order(
    request: OrderCreate,
    current_user: UserSchema = Depends(get_current_active_user),
    order_service: OrderService = Depends(get_order_service),
) -> BaseResponse:
    order = order_service.create_order(
        customer_id=current_user.id,
        items=request.items,
        shipping_cost=request.shipping_cost,
        payment_method=request.payment_method,
    )
    return BaseResponse(success=True, data=order, message="Order created")


@router.get("/{order_id}", response_model=BaseResponse)
async def get_order(
    order_id: int = Path(..., ge=1),
    current_user: UserSchema = Depends(get_current_active_user),
    order_service: OrderService = Depends(get_order_service),
) -> BaseResponse:
    order = order_service.get_order(order_id, current_user)
    return BaseResponse(success=True, data=order)


@router.put("/{order_id}/status", response_model=BaseResponse)
async def update_order_status(
    request: OrderStatusUpdate,
    order_id: int = Path(..., ge=1),
    current_user: UserSchema = Depends(get_current_active_user),
    order_service: OrderService = Depends(get_order_service),
) -> BaseResponse:
    """
    Move an order to its next status

    Delivering an order posts platform commission and queues seller payouts.
    Cancelling or returning a wallet-paid order refunds the wallet.
    """
    order = order_service.update_status(
        order_id, actor=current_user, new_status=request.status, note=request.note
    )
    return BaseResponse(success=True, data=order, message=f"Order status updated to {order.status.value}")


@router.post("/{order_id}/pay-wallet", response_model=BaseResponse)
async def pay_with_wallet(
    order_id: int = Path(..., ge=1),
    current_user: UserSchema = Depends(get_current_active_user),
    order_service: OrderService = Depends(get_order_service),
) -> BaseResponse:
    order = order_service.pay_with_wallet(order_id, customer_id=current_user.id)
    return BaseResponse(success=True, data=order, message="Order paid from wallet")
