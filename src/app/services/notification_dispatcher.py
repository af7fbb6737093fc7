"""Fire-and-forget notification dispatch

Billing and login flows hand notifications to the dispatcher and move on.
Delivery runs in background tasks; failures are logged and dropped.
"""

import asyncio
import logging
from typing import Awaitable, Set
from src.app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    def __init__(self, service: NotificationService):
        self.service = service
        self._pending: Set[asyncio.Task] = set()

    def notify_user(self, user_id: str, title: str, body: str) -> None:
        self._spawn(self.service.notify_user(user_id, title, body), f"user {user_id}")

    def notify_admins(self, title: str, body: str) -> None:
        self._spawn(self.service.notify_admins(title, body), "admins")

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for in-flight deliveries (shutdown and tests)"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _spawn(self, delivery: Awaitable[bool], target: str) -> None:
        task = asyncio.get_running_loop().create_task(self._deliver(delivery, target))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, delivery: Awaitable[bool], target: str) -> None:
        try:
            if not await delivery:
                logger.warning(f"Notification to {target} was not accepted by the sink")
        except Exception as e:
            logger.error(f"Notification to {target} failed: {e}")
