"""SQLAlchemy Payment Repository Implementation

Implements payment persistence with a compare-and-swap status transition.
"""

from datetime import datetime
from typing import List, Optional, Tuple
from sqlalchemy import func, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.payment_repository import PaymentRepository
from src.domain.payment import Payment, PaymentStatus


class SqlAlchemyPaymentRepository(PaymentRepository):
    """
    SQLAlchemy implementation of PaymentRepository

    Uses async session for database operations.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, payment_id: str) -> Optional[Payment]:
        statement = select(Payment).where(Payment.id == payment_id).execution_options(populate_existing=True)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def create(self, payment: Payment) -> Payment:
        self.session.add(payment)
        await self.session.flush()
        await self.session.refresh(payment)
        return payment

    async def transition_status(
        self,
        payment_id: str,
        new_status: PaymentStatus,
        transaction_id: Optional[str],
    ) -> bool:
        """
        Move a pending payment to a final status

        Args:
            payment_id: Payment ID
            new_status: Final status
            transaction_id: Gateway transaction id (kept unchanged if None)

        Returns:
            True if this statement changed the row
        """
        values = {"status": new_status, "updated_at": datetime.utcnow()}
        if transaction_id is not None:
            values["transaction_id"] = transaction_id

        statement = (
            update(Payment)
            .where(Payment.id == payment_id, Payment.status == PaymentStatus.PENDING)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(statement)
        return result.rowcount == 1

    async def list_by_user(self, user_id: str, limit: int = 20, offset: int = 0) -> Tuple[List[Payment], int]:
        count_statement = select(func.count()).select_from(Payment).where(Payment.user_id == user_id)
        total = (await self.session.execute(count_statement)).scalar_one()

        statement = (
            select(Payment)
            .where(Payment.user_id == user_id)
            .order_by(Payment.created_at.desc(), Payment.id)
            .limit(limit)
            .offset(offset)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all()), total
