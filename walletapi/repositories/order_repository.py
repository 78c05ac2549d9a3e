from typing import Optional

from sqlalchemy.orm import Session

from walletapi.models.order import Order as OrderModel, OrderStatusHistory
from walletapi.schemas.order import Order
from walletapi.repositories.base import BaseRepository


class OrderRepository(BaseRepository[OrderModel, Order]):
    def __init__(self, db: Session):
        super().__init__(OrderModel, Order, db)

    def add_history(
        self,
        order_id: int,
        from_status: Optional[str],
        status: str,
        note: Optional[str] = None,
        updated_by: Optional[int] = None,
    ) -> OrderStatusHistory:
        """Queue a history row; flushed with the order update"""
        row = OrderStatusHistory(
            order_id=order_id,
            from_status=from_status,
            status=status,
            note=note,
            updated_by=updated_by,
        )
        self.db.add(row)
        return row
