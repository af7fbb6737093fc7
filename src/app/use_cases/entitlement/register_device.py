"""Device slot use cases

RegisterDevice, DeactivateDevice and ListDevices. Slot accounting is
serialized per user through the subscription record row lock.
"""

import logging
from datetime import datetime
from typing import Callable, Optional
from sqlalchemy.exc import IntegrityError
from libs.result import Result, Return, Error, ErrorCategory
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.account_repository import AccountRepository
from src.app.repositories.device_registration_repository import DeviceRegistrationRepository
from src.app.repositories.subscription_record_repository import SubscriptionRecordRepository
from src.domain.account import AccountRole
from src.domain.device_registration import DeviceRegistration
from src.domain.subscription_record import SubscriptionRecord
from .dtos import (
    DeactivateDeviceResponseDTO,
    DeviceListDTO,
    DeviceRegistrationDTO,
    RegisterDeviceCommandDTO,
)

logger = logging.getLogger(__name__)


async def lock_user_row(
    uow: UnitOfWork, record_repo: SubscriptionRecordRepository, user_id: str
) -> SubscriptionRecord:
    """
    Lock the user's subscription record, creating a free one if missing

    Must run before any other write of the transaction: losing the insert
    race to a concurrent login rolls back and re-selects the winner's row.
    """
    record = await record_repo.get_by_user_id(user_id, for_update=True)
    if record is not None:
        return record

    try:
        return await record_repo.create(SubscriptionRecord(user_id=user_id))
    except IntegrityError:
        await uow.rollback()
        logger.info(f"Concurrent first login for {user_id}; reusing the existing record")
        return await record_repo.get_by_user_id(user_id, for_update=True)


class RegisterDevice:
    """
    Use Case: Claim a device slot at login

    Business Rules:
    1. At most device_limit active devices per account
    2. A device that is already active only refreshes last_login_at
    3. An inactive device is reactivated only if a slot is free
    4. Admin accounts are not limited
    5. A refusal carries the active devices so one can be freed

    Flow:
    1. Lock the user's subscription record
    2. Refresh an already-active registration
    3. Count active devices (non-admins)
    4. Reactivate or create the registration
    5. Commit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        device_repo: DeviceRegistrationRepository,
        record_repo: SubscriptionRecordRepository,
        account_repo: Optional[AccountRepository] = None,
        device_limit: int = 2,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.uow = uow
        self.device_repo = device_repo
        self.record_repo = record_repo
        self.account_repo = account_repo
        self.device_limit = device_limit
        self.clock = clock

    async def execute(self, command: RegisterDeviceCommandDTO) -> Result[DeviceRegistrationDTO]:
        """
        Execute device registration

        Args:
            command: RegisterDeviceCommandDTO with user, device fingerprint and device info

        Returns:
            Result[DeviceRegistrationDTO]: Registration, or DEVICE_LIMIT_EXCEEDED
        """
        try:
            now = self.clock()

            # Step 1: Serialize slot accounting for this user
            await lock_user_row(self.uow, self.record_repo, command.user_id)

            # Step 2: Known active device
            registration = await self.device_repo.get_by_user_and_device(
                command.user_id, command.device_id
            )
            if registration and registration.active:
                self._apply_device_info(registration, command, now)
                registration = await self.device_repo.update(registration)
                await self.uow.commit()
                return Return.ok(DeviceRegistrationDTO.from_entity(registration))

            # Step 3: Slot check
            if not await self._is_exempt(command):
                active_devices = await self.device_repo.list_active(command.user_id)
                if len(active_devices) >= self.device_limit:
                    devices = [
                        DeviceRegistrationDTO.from_entity(device).model_dump(mode="json")
                        for device in active_devices
                    ]
                    await self.uow.rollback()
                    logger.warning(
                        f"Device {command.device_id} refused for {command.user_id}: "
                        f"{len(devices)}/{self.device_limit} slots in use"
                    )
                    return Return.err(
                        Error(
                            code="DEVICE_LIMIT_EXCEEDED",
                            message=f"Device limit reached ({self.device_limit}). Deactivate a device to continue.",
                            reason=f"active={len(devices)}, limit={self.device_limit}",
                            details={"devices": devices, "device_limit": self.device_limit},
                        )
                    )

            # Step 4: Reactivate or create
            if registration:
                registration.active = True
                self._apply_device_info(registration, command, now)
                registration = await self.device_repo.update(registration)
            else:
                registration = DeviceRegistration(
                    user_id=command.user_id,
                    device_id=command.device_id,
                    active=True,
                    registered_at=now,
                    last_login_at=now,
                )
                self._apply_device_info(registration, command, now)
                registration = await self.device_repo.create(registration)

            # Step 5: Commit
            await self.uow.commit()

            logger.info(f"Device {command.device_id} registered for {command.user_id}")
            return Return.ok(DeviceRegistrationDTO.from_entity(registration))

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Device registration failed for {command.user_id}: {e}")
            return Return.err(
                Error(
                    code="REGISTER_DEVICE_FAILED",
                    message="Failed to register device",
                    reason=str(e),
                    category=ErrorCategory.INFRASTRUCTURE,
                )
            )

    async def _is_exempt(self, command: RegisterDeviceCommandDTO) -> bool:
        if command.role == AccountRole.ADMIN:
            return True
        if self.account_repo is None:
            return False
        account = await self.account_repo.get_by_id(command.user_id)
        return account is not None and account.role == AccountRole.ADMIN

    @staticmethod
    def _apply_device_info(
        registration: DeviceRegistration,
        command: RegisterDeviceCommandDTO,
        now: datetime,
    ) -> None:
        registration.last_login_at = now
        for field in ("device_name", "device_type", "browser", "os"):
            value = getattr(command, field)
            if value is not None:
                setattr(registration, field, value)


class DeactivateDevice:
    """
    Use Case: Free a device slot

    Idempotent: unknown or already-inactive devices are not an error.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        device_repo: DeviceRegistrationRepository,
        record_repo: SubscriptionRecordRepository,
    ):
        self.uow = uow
        self.device_repo = device_repo
        self.record_repo = record_repo

    async def execute(self, user_id: str, device_id: str) -> Result[DeactivateDeviceResponseDTO]:
        try:
            await self.record_repo.get_by_user_id(user_id, for_update=True)

            registration = await self.device_repo.get_by_user_and_device(user_id, device_id)
            if not registration or not registration.active:
                await self.uow.rollback()
                return Return.ok(DeactivateDeviceResponseDTO(device_id=device_id, deactivated=False))

            registration.active = False
            await self.device_repo.update(registration)
            await self.uow.commit()

            logger.info(f"Device {device_id} deactivated for {user_id}")
            return Return.ok(DeactivateDeviceResponseDTO(device_id=device_id, deactivated=True))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="DEACTIVATE_DEVICE_FAILED",
                    message="Failed to deactivate device",
                    reason=str(e),
                    category=ErrorCategory.INFRASTRUCTURE,
                )
            )


class ListDevices:
    """Active devices of an account, most recent login first"""

    def __init__(self, device_repo: DeviceRegistrationRepository, device_limit: int = 2):
        self.device_repo = device_repo
        self.device_limit = device_limit

    async def execute(self, user_id: str) -> Result[DeviceListDTO]:
        try:
            devices = await self.device_repo.list_active(user_id)
            return Return.ok(
                DeviceListDTO(
                    user_id=user_id,
                    devices=[DeviceRegistrationDTO.from_entity(device) for device in devices],
                    device_limit=self.device_limit,
                )
            )
        except Exception as e:
            return Return.err(
                Error(
                    code="LIST_DEVICES_FAILED",
                    message="Failed to list devices",
                    reason=str(e),
                    category=ErrorCategory.INFRASTRUCTURE,
                )
            )
