"""Device Registration Repository Interface

Defines the contract for device slot persistence operations.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from src.domain.device_registration import DeviceRegistration


class DeviceRegistrationRepository(ABC):
    """Repository interface for DeviceRegistration persistence"""

    @abstractmethod
    async def get_by_user_and_device(self, user_id: str, device_id: str) -> Optional[DeviceRegistration]:
        """
        Retrieve a registration by its natural key

        Args:
            user_id: Account identifier
            device_id: Client device fingerprint

        Returns:
            DeviceRegistration if found (active or not), None otherwise
        """
        pass

    @abstractmethod
    async def list_active(self, user_id: str) -> List[DeviceRegistration]:
        """Active registrations of a user, most recent login first"""
        pass

    @abstractmethod
    async def create(self, registration: DeviceRegistration) -> DeviceRegistration:
        pass

    @abstractmethod
    async def update(self, registration: DeviceRegistration) -> DeviceRegistration:
        pass
