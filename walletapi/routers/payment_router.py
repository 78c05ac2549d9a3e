"""
Wallet / payment API router

User endpoints:
- GET  /payments/balance: derived wallet balance (and cached balance)
- GET  /payments/history: my payment requests
- POST /payments/deposit: request a wallet top-up

Seller endpoints:
- GET/POST /payments/bank-account: payout destination
- GET  /payments/seller/payments: my payouts

Admin endpoints:
- GET  /payments/admin/pending
- POST /payments/admin/approve-deposit/{payment_id}
- POST /payments/admin/approve-seller-payment/{payment_id}
- POST /payments/admin/reject/{payment_id}
- GET  /payments/admin/commission-stats
- POST /payments/admin/orders/{order_id}/commission
- POST /payments/admin/verify-bank-account/{user_id}
- GET  /payments/admin/integrity/{user_id}

Every endpoint requires a bearer token.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Body, Depends, Path, Query

from walletapi.core.auth_middleware import (
    get_current_active_user,
    require_admin,
    require_seller,
)
from walletapi.deps import (
    get_commission_service,
    get_ledger_service,
    get_payment_service,
)
from walletapi.models.payment import PaymentStatus, PaymentType
from walletapi.schemas.base import BaseResponse
from walletapi.schemas.payment import ApproveRequest, DepositRequest, RejectRequest
from walletapi.schemas.user import BankAccountUpdate
from walletapi.schemas.user import User as UserSchema
from walletapi.services.commission_service import CommissionService
from walletapi.services.ledger_service import LedgerService
from walletapi.services.payment_service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


@router.get("/balance", response_model=BaseResponse)
async def get_my_balance(
    current_user: UserSchema = Depends(get_current_active_user),
    ledger_service: LedgerService = Depends(get_ledger_service),
) -> BaseResponse:
    """
    Current wallet balance

    `balance` is read from the latest ledger entry; `cached_balance` is the
    value stored on the account.
    """
    summary = ledger_service.get_balance_summary(current_user.id)
    return BaseResponse(success=True, data=summary)


@router.get("/history", response_model=BaseResponse)
async def get_my_history(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    type: Optional[PaymentType] = Query(None),
    status: Optional[PaymentStatus] = Query(None),
    current_user: UserSchema = Depends(get_current_active_user),
    payment_service: PaymentService = Depends(get_payment_service),
) -> BaseResponse:
    result = payment_service.get_history(
        current_user.id,
        page=page,
        limit=limit,
        type=type.value if type else None,
        status=status.value if status else None,
    )
    return BaseResponse(
        success=True,
        data={"payments": result.payments},
        meta={"pagination": result.pagination.model_dump()},
    )


@router.post("/deposit", response_model=BaseResponse, status_code=201)
async def create_deposit(
    request: DepositRequest,
    current_user: UserSchema = Depends(get_current_active_user),
    payment_service: PaymentService = Depends(get_payment_service),
) -> BaseResponse:
    """Request a top-up; the balance changes only after an admin approves it."""
    payment = payment_service.create_deposit(
        user_id=current_user.id,
        amount=request.amount,
        method=request.method.value,
        description=request.description,
    )
    return BaseResponse(
        success=True,
        data=payment,
        message="Deposit request created and waiting for approval",
    )


# ---------------------------------------------------------------------------
# Seller
# ---------------------------------------------------------------------------


@router.post("/bank-account", response_model=BaseResponse)
async def update_bank_account(
    request: BankAccountUpdate,
    current_user: UserSchema = Depends(require_seller),
    payment_service: PaymentService = Depends(get_payment_service),
) -> BaseResponse:
    account = payment_service.upsert_bank_account(
        current_user.id,
        bank_name=request.bank_name,
        account_number=request.account_number,
        account_holder=request.account_holder,
        branch=request.branch,
    )
    return BaseResponse(success=True, data=account, message="Bank account updated")


@router.get("/bank-account", response_model=BaseResponse)
async def get_bank_account(
    current_user: UserSchema = Depends(require_seller),
    payment_service: PaymentService = Depends(get_payment_service),
) -> BaseResponse:
    account = payment_service.get_bank_account(current_user.id)
    return BaseResponse(success=True, data=account)


@router.get("/seller/payments", response_model=BaseResponse)
async def get_seller_payments(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[PaymentStatus] = Query(None),
    current_user: UserSchema = Depends(require_seller),
    payment_service: PaymentService = Depends(get_payment_service),
) -> BaseResponse:
    result = payment_service.get_seller_payments(
        current_user.id, page=page, limit=limit, status=status.value if status else None
    )
    return BaseResponse(
        success=True,
        data={"payments": result.payments},
        meta={"pagination": result.pagination.model_dump()},
    )


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


@router.get("/admin/pending", response_model=BaseResponse)
async def get_pending_payments(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    type: Optional[PaymentType] = Query(None),
    current_user: UserSchema = Depends(require_admin),
    payment_service: PaymentService = Depends(get_payment_service),
) -> BaseResponse:
    result = payment_service.get_pending(
        page=page, limit=limit, type=type.value if type else None
    )
    return BaseResponse(
        success=True,
        data={"payments": result.payments},
        meta={"pagination": result.pagination.model_dump()},
    )


@router.post("/admin/approve-deposit/{payment_id}", response_model=BaseResponse)
async def approve_deposit(
    payment_id: int = Path(..., ge=1),
    request: Optional[ApproveRequest] = Body(None),
    current_user: UserSchema = Depends(require_admin),
    payment_service: PaymentService = Depends(get_payment_service),
) -> BaseResponse:
    """
    Approve a pending deposit

    HTTP Status:
        200: approved, ledger entry written, balance credited
        400: request is not a deposit
        404: request not found
        409: request already processed
    """
    decision = payment_service.approve_deposit(
        payment_id, admin_id=current_user.id, notes=request.notes if request else None
    )
    return BaseResponse(success=True, data=decision, message="Deposit approved")


@router.post("/admin/approve-seller-payment/{payment_id}", response_model=BaseResponse)
async def approve_seller_payment(
    payment_id: int = Path(..., ge=1),
    request: Optional[ApproveRequest] = Body(None),
    current_user: UserSchema = Depends(require_admin),
    payment_service: PaymentService = Depends(get_payment_service),
) -> BaseResponse:
    decision = payment_service.approve_seller_payment(
        payment_id, admin_id=current_user.id, notes=request.notes if request else None
    )
    return BaseResponse(success=True, data=decision, message="Seller payment approved")


@router.post("/admin/reject/{payment_id}", response_model=BaseResponse)
async def reject_payment(
    request: RejectRequest,
    payment_id: int = Path(..., ge=1),
    current_user: UserSchema = Depends(require_admin),
    payment_service: PaymentService = Depends(get_payment_service),
) -> BaseResponse:
    payment = payment_service.reject(payment_id, admin_id=current_user.id, reason=request.reason)
    return BaseResponse(success=True, data=payment, message="Payment request rejected")


@router.get("/admin/commission-stats", response_model=BaseResponse)
async def get_commission_stats(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    current_user: UserSchema = Depends(require_admin),
    payment_service: PaymentService = Depends(get_payment_service),
) -> BaseResponse:
    """Date range applies only when both start_date and end_date are given."""
    stats = payment_service.get_commission_stats(start_date=start_date, end_date=end_date)
    return BaseResponse(success=True, data=stats)


@router.post("/admin/orders/{order_id}/commission", response_model=BaseResponse)
async def post_order_commission(
    order_id: int = Path(..., ge=1),
    current_user: UserSchema = Depends(require_admin),
    commission_service: CommissionService = Depends(get_commission_service),
) -> BaseResponse:
    """Backfill commission for a delivered order; repeat calls return the existing posting."""
    posting = commission_service.post_for_order(order_id)
    message = "Commission already posted" if posting.already_posted else "Commission posted"
    return BaseResponse(success=True, data=posting, message=message)


@router.post("/admin/verify-bank-account/{user_id}", response_model=BaseResponse)
async def verify_bank_account(
    user_id: int = Path(..., ge=1),
    current_user: UserSchema = Depends(require_admin),
    payment_service: PaymentService = Depends(get_payment_service),
) -> BaseResponse:
    account = payment_service.verify_bank_account(user_id, admin_id=current_user.id)
    return BaseResponse(success=True, data=account, message="Bank account verified")


@router.get("/admin/integrity/{user_id}", response_model=BaseResponse)
async def verify_wallet_integrity(
    user_id: int = Path(..., ge=1),
    current_user: UserSchema = Depends(require_admin),
    ledger_service: LedgerService = Depends(get_ledger_service),
) -> BaseResponse:
    report = ledger_service.verify_integrity(user_id)
    return BaseResponse(success=True, data=report)
