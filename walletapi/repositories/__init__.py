from .base import BaseRepository
from .user_repository import UserRepository
from .ledger_repository import LedgerRepository
from .payment_repository import PaymentRepository
from .order_repository import OrderRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "LedgerRepository",
    "PaymentRepository",
    "OrderRepository",
]
