"""SweepExpiringSubscriptions Use Case

Runs the login-time expiry notices for every trial/premium account, so
users who never log in are still warned and admins still learn about
expirations.
"""

import logging
import time
from datetime import datetime
from libs.result import Result, Return, Error, ErrorCategory
from src.app.repositories.subscription_record_repository import SubscriptionRecordRepository
from .check_on_login import CheckSubscriptionOnLogin
from .dtos import ExpirySweepResultDTO, NoticeSeverity

logger = logging.getLogger(__name__)


class SweepExpiringSubscriptions:
    """
    Use Case: Expiry sweep

    Business Rules:
    1. Only records stored as trial/premium with an end date are visited
    2. Notice dedup is shared with login checks (one notice per threshold)
    3. A failing account is counted and skipped; the sweep continues

    Flow:
    1. Collect user ids of candidate records
    2. Run CheckSubscriptionOnLogin for each
    3. Tally accounts expiring soon and expired
    """

    def __init__(self, record_repo: SubscriptionRecordRepository, check_on_login: CheckSubscriptionOnLogin):
        self.record_repo = record_repo
        self.check_on_login = check_on_login

    async def execute(self) -> Result[ExpirySweepResultDTO]:
        started = time.monotonic()

        try:
            records = await self.record_repo.list_with_end_date()
            user_ids = [record.user_id for record in records]
        except Exception as e:
            logger.error(f"Expiry sweep could not list subscriptions: {e}")
            return Return.err(
                Error(
                    code="EXPIRY_SWEEP_FAILED",
                    message="Failed to list subscriptions",
                    reason=str(e),
                    category=ErrorCategory.INFRASTRUCTURE,
                )
            )

        logger.info(f"Expiry sweep over {len(user_ids)} subscription(s)")

        warnings = 0
        expirations = 0
        failures = 0

        for user_id in user_ids:
            result = await self.check_on_login.execute(user_id)
            if result.is_err():
                failures += 1
                logger.warning(f"Expiry check failed for {user_id}: {result.error.reason}")
                continue

            check = result.value
            if check.severity == NoticeSeverity.WARNING:
                warnings += 1
            elif check.severity == NoticeSeverity.ERROR:
                expirations += 1

        return Return.ok(
            ExpirySweepResultDTO(
                records_checked=len(user_ids),
                expiring_soon=warnings,
                expired=expirations,
                failures=failures,
                sweep_time=datetime.utcnow(),
                execution_time_ms=int((time.monotonic() - started) * 1000),
            )
        )
