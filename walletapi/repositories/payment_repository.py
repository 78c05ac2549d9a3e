from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import desc
from sqlalchemy.orm import Session

from walletapi.models.payment import Payment as PaymentModel, PaymentStatus, PaymentType
from walletapi.schemas.payment import Payment
from walletapi.repositories.base import BaseRepository


class PaymentRepository(BaseRepository[PaymentModel, Payment]):
    def __init__(self, db: Session):
        super().__init__(PaymentModel, Payment, db)

    def _newest_first(self, query):
        return query.order_by(desc(self.model_class.created_at), desc(self.model_class.id))

    def get_by_transaction_id(self, transaction_id: str) -> Optional[PaymentModel]:
        return (
            self.db.query(self.model_class)
            .filter(self.model_class.transaction_id == transaction_id)
            .first()
        )

    def list_payments(
        self,
        page: int = 1,
        limit: int = 10,
        user_id: Optional[int] = None,
        seller_id: Optional[int] = None,
        type: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Tuple[List[Payment], int]:
        """Filtered, newest-first page of payment requests"""
        self._ensure_clean_session()
        query = self._apply_filters(
            self.db.query(self.model_class),
            {"user_id": user_id, "seller_id": seller_id, "type": type, "status": status},
        )
        return self.paginate(self._newest_first(query), page, limit)

    def list_pending(
        self, page: int = 1, limit: int = 10, type: Optional[str] = None
    ) -> Tuple[List[Payment], int]:
        return self.list_payments(
            page=page, limit=limit, type=type, status=PaymentStatus.PENDING.value
        )

    def list_commissions(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> List[Payment]:
        query = self.db.query(self.model_class).filter(
            self.model_class.type == PaymentType.COMMISSION.value
        )
        if start is not None and end is not None:
            query = query.filter(
                self.model_class.created_at >= start,
                self.model_class.created_at <= end,
            )
        return [self._to_schema(row) for row in self._newest_first(query).all()]

    def find_for_order(
        self, order_id: int, type: Optional[PaymentType] = None
    ) -> List[PaymentModel]:
        query = self.db.query(self.model_class).filter(
            self.model_class.order_id == order_id
        )
        if type is not None:
            query = query.filter(self.model_class.type == PaymentType(type).value)
        return query.order_by(self.model_class.id).all()
