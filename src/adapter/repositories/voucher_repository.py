"""SQLAlchemy implementations of the voucher repositories

Redemption slots are claimed with a conditional UPDATE whose affected row
count decides the winner, so concurrent redeemers cannot oversubscribe a
voucher even without row locks.
"""

from typing import List, Optional
from sqlalchemy import update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.voucher_repository import VoucherRepository, VoucherUsageRepository
from src.domain.voucher import Voucher, VoucherStatus, VoucherUsage


class SqlAlchemyVoucherRepository(VoucherRepository):
    """
    SQLAlchemy implementation of VoucherRepository

    Features:
    - Atomic compare-and-increment of current_uses
    - Code lookups on the unique, normalized code column
    - Id and list reads refresh identity-map copies (claim_use bypasses the session)
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_code(self, code: str) -> Optional[Voucher]:
        stmt = select(Voucher).where(Voucher.code == code)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_id(self, voucher_id: int) -> Optional[Voucher]:
        stmt = select(Voucher).where(Voucher.id == voucher_id).execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_all(self) -> List[Voucher]:
        stmt = select(Voucher).order_by(Voucher.created_at.desc()).execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, voucher: Voucher) -> Voucher:
        """
        Create a new voucher

        Raises:
            IntegrityError: If the code is already taken
        """
        self.session.add(voucher)
        await self.session.flush()
        await self.session.refresh(voucher)
        return voucher

    async def update(self, voucher: Voucher) -> Voucher:
        self.session.add(voucher)
        await self.session.flush()
        await self.session.refresh(voucher)
        return voucher

    async def claim_use(self, voucher_id: int) -> bool:
        """
        Take one use of an active, non-exhausted voucher

        Args:
            voucher_id: Voucher ID

        Returns:
            True if exactly one row was updated

        Note:
            In-session Voucher instances are not refreshed; re-read the
            voucher if the new counter value is needed.
        """
        stmt = (
            update(Voucher)
            .where(
                Voucher.id == voucher_id,
                Voucher.current_uses < Voucher.max_uses,
                Voucher.status == VoucherStatus.ACTIVE,
            )
            .values(current_uses=Voucher.current_uses + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1


class SqlAlchemyVoucherUsageRepository(VoucherUsageRepository):
    """SQLAlchemy implementation of VoucherUsageRepository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_voucher_and_user(self, voucher_id: int, user_id: str) -> Optional[VoucherUsage]:
        stmt = select(VoucherUsage).where(
            VoucherUsage.voucher_id == voucher_id,
            VoucherUsage.user_id == user_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, usage: VoucherUsage) -> VoucherUsage:
        """
        Append a usage row

        Raises:
            IntegrityError: If (voucher_id, user_id) already exists
        """
        self.session.add(usage)
        await self.session.flush()
        await self.session.refresh(usage)
        return usage

    async def list_by_voucher(self, voucher_id: int) -> List[VoucherUsage]:
        stmt = (
            select(VoucherUsage)
            .where(VoucherUsage.voucher_id == voucher_id)
            .order_by(VoucherUsage.used_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_by_user(self, user_id: str) -> List[VoucherUsage]:
        stmt = (
            select(VoucherUsage)
            .where(VoucherUsage.user_id == user_id)
            .order_by(VoucherUsage.used_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
