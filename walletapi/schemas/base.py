from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel


class ErrorCode(str, Enum):
    # Auth related
    UNAUTHORIZED = "AUTH_001"
    FORBIDDEN = "AUTH_002"

    # Generic
    VALIDATION = "VALIDATION_001"
    NOT_FOUND = "NOT_FOUND_001"
    CONFLICT = "CONFLICT_001"
    INTERNAL = "INTERNAL_001"

    # Wallet related
    INVALID_PAYMENT_TYPE = "PAYMENT_001"
    PAYMENT_ALREADY_PROCESSED = "PAYMENT_002"
    INSUFFICIENT_BALANCE = "BALANCE_001"
    INVALID_ORDER_TRANSITION = "ORDER_001"


class Error(BaseModel):
    code: str
    message: str
    details: Optional[dict] = None


class BaseResponse(BaseModel):
    success: bool = True
    data: Optional[Any] = None
    message: Optional[str] = None
    errors: Optional[List[Any]] = None
    error: Optional[Error] = None
    meta: Optional[dict] = None
