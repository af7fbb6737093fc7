from typing import List, Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.account_repository import AccountRepository
from src.domain.account import Account, AccountRole


class SqlAlchemyAccountRepository(AccountRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: str) -> Optional[Account]:
        stmt = select(Account).where(Account.id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_admin_ids(self) -> List[str]:
        stmt = select(Account.id).where(Account.role == AccountRole.ADMIN)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
