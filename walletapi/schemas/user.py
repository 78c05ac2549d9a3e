from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from walletapi.models.user import UserRole


class User(BaseModel):
    id: int
    email: str
    username: str
    role: UserRole = UserRole.USER
    is_active: bool = True
    wallet_balance: Decimal = Decimal("0")
    wallet_currency: str = "VND"
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def is_admin(self) -> bool:
        return UserRole.is_admin(self.role)

    @property
    def is_seller(self) -> bool:
        return self.role == UserRole.SELLER


class BankAccountUpdate(BaseModel):
    bank_name: str = Field(..., min_length=1, max_length=100)
    account_number: str = Field(..., min_length=1, max_length=50)
    account_holder: str = Field(..., min_length=1, max_length=100)
    branch: Optional[str] = Field(None, max_length=100)

    @field_validator("bank_name", "account_number", "account_holder")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if v.strip() == "":
            raise ValueError("Field cannot be blank")
        return v.strip()


class BankAccount(BaseModel):
    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    account_holder: Optional[str] = None
    branch: Optional[str] = None
    is_verified: bool = False
    verified_at: Optional[datetime] = None
    verified_by: Optional[int] = None

    @classmethod
    def from_user(cls, user) -> "BankAccount":
        return cls(
            bank_name=user.bank_name,
            account_number=user.bank_account_number,
            account_holder=user.bank_account_holder,
            branch=user.bank_branch,
            is_verified=bool(user.bank_account_verified),
            verified_at=user.bank_account_verified_at,
            verified_by=user.bank_account_verified_by,
        )
