"""Device API Routes

Device slot management for the calling account.
"""

from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.account_repository import SqlAlchemyAccountRepository
from src.adapter.repositories.device_registration_repository import SqlAlchemyDeviceRegistrationRepository
from src.adapter.repositories.subscription_record_repository import SqlAlchemySubscriptionRecordRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.context import get_request_context
from src.api.error import ClientError
from src.api.schemas.entitlement_request import DeviceRequestSchema
from src.app.use_cases.entitlement.dtos import (
    DeactivateDeviceResponseDTO,
    DeviceListDTO,
    DeviceRegistrationDTO,
    RegisterDeviceCommandDTO,
    RequestContext,
)
from src.app.use_cases.entitlement.register_device import DeactivateDevice, ListDevices, RegisterDevice
from src.depends import get_session

router = APIRouter(prefix="/devices", tags=["Devices"])


@router.post(
    "/register",
    response_model=DeviceRegistrationDTO,
    status_code=status.HTTP_200_OK,
)
async def register_device(
    request: DeviceRequestSchema,
    context: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
):
    """
    Claim a device slot.

    **Returns:**
    - 200: Device registered or refreshed
    - 409: Device limit reached (active devices in `details.devices`)
    """
    use_case = RegisterDevice(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyDeviceRegistrationRepository(session),
        SqlAlchemySubscriptionRecordRepository(session),
        SqlAlchemyAccountRepository(session),
        device_limit=ApplicationConfig.DEVICE_LIMIT,
    )
    result = await use_case.execute(
        RegisterDeviceCommandDTO(
            user_id=context.user_id,
            role=context.role,
            device_id=request.device_id,
            device_name=request.device_name,
            device_type=request.device_type,
            browser=request.browser,
            os=request.os,
        )
    )

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post(
    "/{device_id}/deactivate",
    response_model=DeactivateDeviceResponseDTO,
    status_code=status.HTTP_200_OK,
)
async def deactivate_device(
    device_id: str,
    context: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
):
    """Free a device slot. Idempotent."""
    use_case = DeactivateDevice(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyDeviceRegistrationRepository(session),
        SqlAlchemySubscriptionRecordRepository(session),
    )
    result = await use_case.execute(context.user_id, device_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get(
    "",
    response_model=DeviceListDTO,
    status_code=status.HTTP_200_OK,
)
async def list_devices(
    context: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
):
    """Active devices of the calling account, most recent login first."""
    use_case = ListDevices(
        SqlAlchemyDeviceRegistrationRepository(session),
        device_limit=ApplicationConfig.DEVICE_LIMIT,
    )
    result = await use_case.execute(context.user_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value
