"""Notification Service Implementations

Provides concrete sinks for user and admin notifications.
"""

import logging
from typing import Callable, List, Optional
import httpx
from sqlmodel.ext.asyncio.session import AsyncSession
from src.adapter.repositories.account_repository import SqlAlchemyAccountRepository
from src.app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class LoggingNotificationService(NotificationService):
    """
    Notification service that logs notifications

    Useful for development and testing, or as a fallback.
    """

    async def notify_user(self, user_id: str, title: str, body: str) -> bool:
        logger.info(f"[NOTIFY USER] {user_id}: {title} - {body}")
        return True

    async def notify_admins(self, title: str, body: str) -> bool:
        logger.warning(f"[NOTIFY ADMINS] {title} - {body}")
        return True


class PushBackendNotificationService(NotificationService):
    """
    Notification service that posts to the push backend

    Sends {"userIds": [...], "title": ..., "body": ...} to <base_url>/notify.
    Admin recipients are resolved from the account mirror in a short
    session of their own.
    """

    def __init__(
        self,
        base_url: str,
        session_factory: Callable[[], AsyncSession],
        timeout: float = 10.0,
    ):
        """
        Initialize push backend notification service

        Args:
            base_url: Push backend root URL
            session_factory: Factory for short-lived DB sessions
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.session_factory = session_factory
        self.timeout = timeout

    async def notify_user(self, user_id: str, title: str, body: str) -> bool:
        return await self._send([user_id], title, body)

    async def notify_admins(self, title: str, body: str) -> bool:
        async with self.session_factory() as session:
            admin_ids = await SqlAlchemyAccountRepository(session).list_admin_ids()

        if not admin_ids:
            logger.warning(f"No admin accounts to notify about: {title}")
            return False

        return await self._send(admin_ids, title, body)

    async def _send(self, user_ids: List[str], title: str, body: str) -> bool:
        payload = {"userIds": user_ids, "title": title, "body": body}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/notify",
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
                logger.info(f"Push notification '{title}' sent to {len(user_ids)} recipient(s)")
                return True
        except httpx.HTTPError as e:
            logger.error(f"Failed to send push notification '{title}': {e}")
            return False


class CompositeNotificationService(NotificationService):
    """
    Notification service that delegates to multiple services

    Useful for sending to multiple channels (e.g., log + push).
    """

    def __init__(self, services: list[NotificationService]):
        self.services = services

    async def notify_user(self, user_id: str, title: str, body: str) -> bool:
        success = False
        for service in self.services:
            try:
                if await service.notify_user(user_id, title, body):
                    success = True
            except Exception as e:
                logger.error(f"Notification service {type(service).__name__} failed: {e}")
        return success

    async def notify_admins(self, title: str, body: str) -> bool:
        success = False
        for service in self.services:
            try:
                if await service.notify_admins(title, body):
                    success = True
            except Exception as e:
                logger.error(f"Notification service {type(service).__name__} failed: {e}")
        return success


def create_notification_service(
    push_url: Optional[str] = None,
    session_factory: Optional[Callable[[], AsyncSession]] = None,
) -> NotificationService:
    """
    Factory function to create appropriate notification service

    Args:
        push_url: Optional push backend URL. If provided together with a
                  session factory, creates composite service with
                  logging + push. Otherwise, just logging.
        session_factory: Session factory used to resolve admin recipients

    Returns:
        Configured NotificationService
    """
    services: list[NotificationService] = [LoggingNotificationService()]

    if push_url and session_factory is not None:
        services.append(PushBackendNotificationService(push_url, session_factory))

    if len(services) == 1:
        return services[0]

    return CompositeNotificationService(services)
