from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from walletapi.models.base import BaseModel, BigIntPK, Money

"""User role enumeration for role-based access control."""


class UserRole(str, Enum):
    USER = "user"  # buyer
    SELLER = "seller"
    ADMIN = "admin"

    @classmethod
    def get_hierarchy_level(cls, role: Union[str, "UserRole"]) -> int:
        """Higher number means more privileges"""
        if isinstance(role, cls):
            role = role.value

        hierarchy = {
            cls.USER.value: 1,
            cls.SELLER.value: 2,
            cls.ADMIN.value: 3,
        }
        return hierarchy.get(str(role), 0)

    @classmethod
    def has_permission(
        cls, user_role: Union[str, "UserRole"], required_role: Union[str, "UserRole"]
    ) -> bool:
        return cls.get_hierarchy_level(user_role) >= cls.get_hierarchy_level(
            required_role
        )

    @classmethod
    def is_admin(cls, role: Union[str, "UserRole"]) -> bool:
        if isinstance(role, cls):
            role = role.value
        return role == cls.ADMIN.value


class User(BaseModel):
    __tablename__ = "users"
    __table_args__ = (Index("idx_users_role", "role"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    role: Mapped[str] = mapped_column(String(20), default=UserRole.USER.value, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Cached wallet balance. The ledger chain is the authoritative history;
    # this column is maintained alongside it by the approval and payment flows.
    wallet_balance: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"), nullable=False)
    wallet_currency: Mapped[str] = mapped_column(String(3), default="VND", nullable=False)

    # Seller payout account
    bank_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    bank_account_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    bank_account_holder: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    bank_branch: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    bank_account_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    bank_account_verified_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    bank_account_verified_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"), nullable=True
    )

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username}, role={self.role})>"

    @property
    def is_admin(self) -> bool:
        return UserRole.is_admin(str(self.role))

    @property
    def is_seller(self) -> bool:
        return str(self.role) == UserRole.SELLER.value

    @property
    def has_bank_account(self) -> bool:
        return bool(self.bank_name and self.bank_account_number)

    def bank_account_snapshot(self) -> Optional[dict]:
        """Payout destination as stored on payment requests"""
        if not self.has_bank_account:
            return None
        return {
            "bank_name": self.bank_name,
            "account_number": self.bank_account_number,
            "account_holder": self.bank_account_holder,
            "branch": self.bank_branch,
        }
