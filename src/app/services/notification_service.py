"""Notification Service Interface

Defines the contract of the push/notification sink.
"""

from abc import ABC, abstractmethod


class NotificationService(ABC):
    """
    Abstract notification sink

    Implementations can deliver via:
    - Push backend (HTTP POST)
    - Logging
    - Several channels at once
    """

    @abstractmethod
    async def notify_user(self, user_id: str, title: str, body: str) -> bool:
        """
        Send a notification to one account

        Args:
            user_id: Recipient account id
            title: Notification title
            body: Notification text

        Returns:
            True if the sink accepted the notification, False otherwise
        """
        pass

    @abstractmethod
    async def notify_admins(self, title: str, body: str) -> bool:
        """
        Send a notification to every admin

        Returns:
            True if the sink accepted the notification, False otherwise
        """
        pass
