"""SQLAlchemy implementation of SubscriptionRecordRepository

Provides persistence for SubscriptionRecord entities with pessimistic
locking support; the record row serializes all writes for one user.
"""

from datetime import datetime
from typing import List, Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.subscription_record_repository import SubscriptionRecordRepository
from src.domain.subscription_record import SubscriptionRecord, SubscriptionStatus


class SqlAlchemySubscriptionRecordRepository(SubscriptionRecordRepository):
    """
    SQLAlchemy implementation of SubscriptionRecordRepository

    Features:
    - Pessimistic locking via SELECT FOR UPDATE
    - updated_at maintained on every update
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_user_id(self, user_id: str, for_update: bool = False) -> Optional[SubscriptionRecord]:
        """
        Retrieve record by user ID with optional row-level locking

        Args:
            user_id: Account identifier
            for_update: If True, locks the row with SELECT FOR UPDATE

        Returns:
            SubscriptionRecord if found, None otherwise
        """
        stmt = select(SubscriptionRecord).where(SubscriptionRecord.user_id == user_id)

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, record: SubscriptionRecord) -> SubscriptionRecord:
        self.session.add(record)
        await self.session.flush()
        await self.session.refresh(record)
        return record

    async def update(self, record: SubscriptionRecord) -> SubscriptionRecord:
        record.updated_at = datetime.utcnow()
        self.session.add(record)
        await self.session.flush()
        await self.session.refresh(record)
        return record

    async def list_with_end_date(self) -> List[SubscriptionRecord]:
        stmt = select(SubscriptionRecord).where(
            SubscriptionRecord.status.in_([SubscriptionStatus.TRIAL, SubscriptionStatus.PREMIUM]),
            SubscriptionRecord.end_date.is_not(None),
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
