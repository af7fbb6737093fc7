"""Session API Routes

Post-authentication login gate.
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
from src.app.services.notification_dispatcher import NotificationDispatcher
from src.app.use_cases.entitlement.check_on_login import CheckSubscriptionOnLogin
from src.app.use_cases.entitlement.dtos import LoginCommandDTO, LoginResultDTO, RequestContext
from src.app.use_cases.entitlement.login_gate import LoginGate
from src.app.use_cases.entitlement.register_device import RegisterDevice
from src.depends import get_notification_dispatcher, get_session

router = APIRouter(prefix="/sessions", tags=["Sessions"])


@router.post(
    "/login",
    response_model=LoginResultDTO,
    status_code=status.HTTP_200_OK,
    responses={
        409: {
            "description": "Device limit reached, login denied",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "DEVICE_LIMIT_EXCEEDED",
                            "message": "Device limit reached (2). Deactivate a device to continue.",
                            "details": {"devices": [], "device_limit": 2}
                        }
                    }
                }
            }
        }
    }
)
async def login(
    request: DeviceRequestSchema,
    context: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """
    Admit an authenticated user on a device.

    Claims a device slot, then checks the subscription and returns the
    expiry banner to display. A refused device means no session.

    **Returns:**
    - 200: Login admitted
    - 409: Device limit reached (active devices in `details.devices`)
    """
    uow = SqlAlchemyUnitOfWork(session)
    record_repo = SqlAlchemySubscriptionRecordRepository(session)

    gate = LoginGate(
        RegisterDevice(
            uow,
            SqlAlchemyDeviceRegistrationRepository(session),
            record_repo,
            SqlAlchemyAccountRepository(session),
            device_limit=ApplicationConfig.DEVICE_LIMIT,
        ),
        CheckSubscriptionOnLogin(
            uow,
            record_repo,
            dispatcher,
            warning_days=ApplicationConfig.EXPIRY_WARNING_DAYS,
        ),
    )

    command = LoginCommandDTO(
        context=context,
        device_id=request.device_id,
        device_name=request.device_name,
        device_type=request.device_type,
        browser=request.browser,
        os=request.os,
    )
    result = await gate.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value
