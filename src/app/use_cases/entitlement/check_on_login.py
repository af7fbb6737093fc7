"""CheckSubscriptionOnLogin Use Case

Expiry banner and one-shot expiry notifications.
"""

import logging
from datetime import datetime
from typing import Callable, Iterable, Optional, Tuple
from libs.result import Result, Return, Error, ErrorCategory
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.notification_dispatcher import NotificationDispatcher
from src.app.repositories.subscription_record_repository import SubscriptionRecordRepository
from src.domain.entitlement import SubscriptionState, current_state
from src.domain.subscription_record import SubscriptionRecord, SubscriptionStatus
from .dtos import LoginCheckDTO, NoticeSeverity

logger = logging.getLogger(__name__)

WARNING_TITLE = "Subscription expiring soon"
EXPIRED_ADMIN_TITLE = "Subscription expired"
EXPIRED_MESSAGE = "Your subscription has expired. Renew it to keep accessing content."


def warning_message(days_remaining: int) -> str:
    if days_remaining == 1:
        return "Your subscription expires tomorrow! Renew now."
    return f"Your subscription expires in {days_remaining} days."


class CheckSubscriptionOnLogin:
    """
    Use Case: Check subscription state when a user logs in

    Business Rules:
    1. days_remaining in the warning thresholds -> warning banner and one
       notification to the user
    2. Expired trial/premium -> error banner and one notification to admins
    3. Anything else -> no banner
    4. Each notice is sent once per (end date, threshold); redundant logins
       and the expiry sweep share the same dedup key
    5. Notification delivery never blocks or fails the login
    """

    def __init__(
        self,
        uow: UnitOfWork,
        record_repo: SubscriptionRecordRepository,
        dispatcher: NotificationDispatcher,
        warning_days: Iterable[int] = (3, 1),
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.uow = uow
        self.record_repo = record_repo
        self.dispatcher = dispatcher
        self.warning_days = frozenset(warning_days)
        self.clock = clock

    async def execute(self, user_id: str) -> Result[LoginCheckDTO]:
        try:
            now = self.clock()
            record = await self.record_repo.get_by_user_id(user_id, for_update=True)
            state = current_state(record, now)

            notice = self._notice_for(record, state)
            if notice is None:
                await self.uow.rollback()
                return Return.ok(
                    LoginCheckDTO(
                        user_id=user_id,
                        show_warning=False,
                        status=state.status,
                        days_remaining=state.days_remaining,
                    )
                )

            notice_key, severity, message = notice

            first_time = record.last_notice_key != notice_key
            if first_time:
                record.last_notice_key = notice_key
                await self.record_repo.update(record)
                await self.uow.commit()
            else:
                await self.uow.rollback()

            if first_time:
                self._dispatch(user_id, severity, message)

            return Return.ok(
                LoginCheckDTO(
                    user_id=user_id,
                    show_warning=True,
                    message=message,
                    severity=severity,
                    status=state.status,
                    days_remaining=state.days_remaining,
                )
            )

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Login subscription check failed for {user_id}: {e}")
            return Return.err(
                Error(
                    code="CHECK_ON_LOGIN_FAILED",
                    message="Failed to check subscription",
                    reason=str(e),
                    category=ErrorCategory.INFRASTRUCTURE,
                )
            )

    def _notice_for(
        self,
        record: Optional[SubscriptionRecord],
        state: SubscriptionState,
    ) -> Optional[Tuple[str, NoticeSeverity, str]]:
        if record is None or record.end_date is None:
            return None

        end_key = record.end_date.strftime("%Y%m%d%H%M%S")

        if state.status == SubscriptionStatus.EXPIRED:
            return f"expired:{end_key}", NoticeSeverity.ERROR, EXPIRED_MESSAGE

        if state.grants_access and state.days_remaining in self.warning_days:
            return (
                f"warn{state.days_remaining}:{end_key}",
                NoticeSeverity.WARNING,
                warning_message(state.days_remaining),
            )

        return None

    def _dispatch(self, user_id: str, severity: NoticeSeverity, message: str) -> None:
        if severity == NoticeSeverity.WARNING:
            self.dispatcher.notify_user(user_id, WARNING_TITLE, message)
        else:
            self.dispatcher.notify_admins(
                EXPIRED_ADMIN_TITLE, f"The subscription of user {user_id} has ended."
            )
