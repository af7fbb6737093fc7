"""SQLAlchemy Device Registration Repository Implementation"""

from typing import List, Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.device_registration_repository import DeviceRegistrationRepository
from src.domain.device_registration import DeviceRegistration


class SqlAlchemyDeviceRegistrationRepository(DeviceRegistrationRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_user_and_device(self, user_id: str, device_id: str) -> Optional[DeviceRegistration]:
        stmt = select(DeviceRegistration).where(
            DeviceRegistration.user_id == user_id,
            DeviceRegistration.device_id == device_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_active(self, user_id: str) -> List[DeviceRegistration]:
        stmt = (
            select(DeviceRegistration)
            .where(DeviceRegistration.user_id == user_id, DeviceRegistration.active.is_(True))
            .order_by(DeviceRegistration.last_login_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, registration: DeviceRegistration) -> DeviceRegistration:
        self.session.add(registration)
        await self.session.flush()
        await self.session.refresh(registration)
        return registration

    async def update(self, registration: DeviceRegistration) -> DeviceRegistration:
        self.session.add(registration)
        await self.session.flush()
        await self.session.refresh(registration)
        return registration
