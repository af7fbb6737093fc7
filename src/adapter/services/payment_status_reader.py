from typing import Callable, Optional
from sqlmodel.ext.asyncio.session import AsyncSession
from src.adapter.repositories.payment_repository import SqlAlchemyPaymentRepository
from src.app.services.payment_status_reader import PaymentStatusReader
from src.domain.payment import PaymentStatus


class SqlAlchemyPaymentStatusReader(PaymentStatusReader):
    """Opens one short session per lookup; no lock outlives the call"""

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self.session_factory = session_factory

    async def get_status(self, payment_id: str) -> Optional[PaymentStatus]:
        async with self.session_factory() as session:
            payment = await SqlAlchemyPaymentRepository(session).get_by_id(payment_id)
            return payment.status if payment else None
