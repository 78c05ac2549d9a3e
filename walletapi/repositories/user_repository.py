from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from walletapi.models.user import User as UserModel, UserRole
from walletapi.schemas.user import User as UserSchema
from walletapi.repositories.base import BaseRepository


class UserRepository(BaseRepository[UserModel, UserSchema]):
    def __init__(self, db: Session):
        super().__init__(UserModel, UserSchema, db)

    def get_by_email(self, email: str) -> Optional[UserSchema]:
        return self.get_by_field("email", email)

    def get_first_admin(self) -> Optional[UserModel]:
        return (
            self.db.query(self.model_class)
            .filter(self.model_class.role == UserRole.ADMIN.value)
            .order_by(self.model_class.id)
            .first()
        )

    def adjust_wallet_balance(
        self, user_id: int, delta: Decimal, commit: bool = True
    ) -> Optional[UserModel]:
        """Read-modify-write of the cached wallet balance.

        Not atomic across concurrent requests; callers run it inside the same
        transaction as the ledger append.
        """
        user = self.get_model(user_id)
        if user is None:
            return None
        user.wallet_balance = (user.wallet_balance or Decimal("0")) + delta
        return self.save(user, commit=commit)

    def update_bank_account(
        self,
        user_id: int,
        bank_name: str,
        account_number: str,
        account_holder: str,
        branch: Optional[str] = None,
        commit: bool = True,
    ) -> Optional[UserModel]:
        """Overwrite the payout account; a changed account needs re-verification"""
        user = self.get_model(user_id)
        if user is None:
            return None
        user.bank_name = bank_name
        user.bank_account_number = account_number
        user.bank_account_holder = account_holder
        user.bank_branch = branch
        user.bank_account_verified = False
        user.bank_account_verified_at = None
        user.bank_account_verified_by = None
        return self.save(user, commit=commit)

    def mark_bank_account_verified(
        self, user_id: int, admin_id: int, commit: bool = True
    ) -> Optional[UserModel]:
        user = self.get_model(user_id)
        if user is None:
            return None
        user.bank_account_verified = True
        user.bank_account_verified_at = datetime.now(timezone.utc)
        user.bank_account_verified_by = admin_id
        return self.save(user, commit=commit)
