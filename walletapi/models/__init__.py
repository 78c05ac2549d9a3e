from walletapi.models.base import Base
from walletapi.models.user import User, UserRole
from walletapi.models.order import Order, OrderItem, OrderStatusHistory
from walletapi.models.payment import Payment
from walletapi.models.ledger import LedgerEntry

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Order",
    "OrderItem",
    "OrderStatusHistory",
    "Payment",
    "LedgerEntry",
]
