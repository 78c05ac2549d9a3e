from .base import BaseResponse, Error, ErrorCode
from .user import User
from .ledger import LedgerEntry
from .payment import Payment
from .order import Order
