"""LoginGate Use Case

Post-authentication gate: a session is only created once the device slot
is claimed and the subscription has been checked.
"""

import logging
from libs.result import Result, Return
from src.domain.entitlement import ACCESS_GRANTING_STATUSES
from .check_on_login import CheckSubscriptionOnLogin
from .dtos import LoginCommandDTO, LoginResultDTO, RegisterDeviceCommandDTO
from .register_device import RegisterDevice

logger = logging.getLogger(__name__)


class LoginGate:
    """
    Use Case: Admit an authenticated user

    Business Rules:
    1. A device refusal denies the login; there is no degraded session
    2. The subscription check runs only after the device is admitted
    3. Expired subscriptions still log in (content gates decide access)
    """

    def __init__(self, register_device: RegisterDevice, check_on_login: CheckSubscriptionOnLogin):
        self.register_device = register_device
        self.check_on_login = check_on_login

    async def execute(self, command: LoginCommandDTO) -> Result[LoginResultDTO]:
        context = command.context

        device_result = await self.register_device.execute(
            RegisterDeviceCommandDTO(
                user_id=context.user_id,
                device_id=command.device_id,
                role=context.role,
                device_name=command.device_name,
                device_type=command.device_type,
                browser=command.browser,
                os=command.os,
            )
        )
        if device_result.is_err():
            logger.info(f"Login denied for {context.user_id}: {device_result.error.code}")
            return Return.err(device_result.error)

        check_result = await self.check_on_login.execute(context.user_id)
        if check_result.is_err():
            return Return.err(check_result.error)

        check = check_result.value
        return Return.ok(
            LoginResultDTO(
                user_id=context.user_id,
                device=device_result.value,
                subscription=check,
                has_access=check.status in ACCESS_GRANTING_STATUSES,
            )
        )
