from fastapi import Depends, Request
from sqlalchemy.orm import Session

from walletapi.database.session import get_db

# Services
from walletapi.services.commission_service import CommissionService
from walletapi.services.ledger_service import LedgerService
from walletapi.services.order_service import OrderService
from walletapi.services.payment_service import PaymentService


def get_ledger_service(request: Request, db: Session = Depends(get_db)) -> LedgerService:
    return request.app.container.services.ledger_service(db=db)


def get_payment_service(request: Request, db: Session = Depends(get_db)) -> PaymentService:
    return request.app.container.services.payment_service(db=db)


def get_commission_service(
    request: Request, db: Session = Depends(get_db)
) -> CommissionService:
    return request.app.container.services.commission_service(db=db)


def get_order_service(request: Request, db: Session = Depends(get_db)) -> OrderService:
    return request.app.container.services.order_service(db=db)
