"""Subscription lifecycle use cases

StartTrial at sign-up, and the admin overrides GrantPremium and
RevokeAccess. All of them lock the record row like the billing flows.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional
from libs.result import Result, Return, Error, ErrorCategory
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.access_cache import AccessCache
from src.app.repositories.subscription_record_repository import SubscriptionRecordRepository
from src.domain.entitlement import extended_end_date
from src.domain.subscription_record import SubscriptionRecord, SubscriptionStatus
from .dtos import GrantPremiumCommandDTO, SubscriptionRecordDTO

logger = logging.getLogger(__name__)


class _RecordMutation:
    def __init__(
        self,
        uow: UnitOfWork,
        record_repo: SubscriptionRecordRepository,
        access_cache: Optional[AccessCache] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.uow = uow
        self.record_repo = record_repo
        self.access_cache = access_cache
        self.clock = clock

    async def _save(self, record: SubscriptionRecord, is_new: bool) -> SubscriptionRecord:
        if is_new:
            record = await self.record_repo.create(record)
        else:
            record = await self.record_repo.update(record)
        await self.uow.commit()
        if self.access_cache:
            await self.access_cache.invalidate(record.user_id)
        return record

    async def _failed(self, code: str, message: str, error: Exception) -> Result:
        await self.uow.rollback()
        logger.error(f"{message}: {error}")
        return Return.err(
            Error(
                code=code,
                message=message,
                reason=str(error),
                category=ErrorCategory.INFRASTRUCTURE,
            )
        )


class StartTrial(_RecordMutation):
    """
    Use Case: Open the free trial of a new account

    Business Rules:
    1. Trial lasts trial_days from now
    2. Idempotent: accounts that already had a trial or premium keep their record
    3. A placeholder free record (no end date, no payments) is upgraded
    """

    def __init__(self, *args, trial_days: int = 7, **kwargs):
        super().__init__(*args, **kwargs)
        self.trial_days = trial_days

    async def execute(self, user_id: str) -> Result[SubscriptionRecordDTO]:
        try:
            now = self.clock()
            record = await self.record_repo.get_by_user_id(user_id, for_update=True)

            if record is not None and not self._is_placeholder(record):
                existing = SubscriptionRecordDTO.from_record(record, now)
                await self.uow.rollback()
                return Return.ok(existing)

            is_new = record is None
            if is_new:
                record = SubscriptionRecord(user_id=user_id)

            record.status = SubscriptionStatus.TRIAL
            record.end_date = now + timedelta(days=self.trial_days)
            record = await self._save(record, is_new)

            logger.info(f"Trial started for {user_id} until {record.end_date.isoformat()}")
            return Return.ok(SubscriptionRecordDTO.from_record(record, now))

        except Exception as e:
            return await self._failed("START_TRIAL_FAILED", f"Failed to start trial for {user_id}", e)

    @staticmethod
    def _is_placeholder(record: SubscriptionRecord) -> bool:
        return (
            record.status == SubscriptionStatus.FREE
            and record.end_date is None
            and record.total_payments == 0
        )


class GrantPremium(_RecordMutation):
    """
    Use Case: Admin grant of premium months

    Same stacking policy as vouchers and payments; payment counters are
    left untouched.
    """

    async def execute(self, command: GrantPremiumCommandDTO) -> Result[SubscriptionRecordDTO]:
        try:
            now = self.clock()
            record = await self.record_repo.get_by_user_id(command.user_id, for_update=True)

            is_new = record is None
            end_date = extended_end_date(record, command.months, now)
            if is_new:
                record = SubscriptionRecord(user_id=command.user_id)

            record.status = SubscriptionStatus.PREMIUM
            record.end_date = end_date
            if command.plan_type is not None:
                record.plan_type = command.plan_type
            record.last_notice_key = None
            record = await self._save(record, is_new)

            logger.info(
                f"Granted {command.months} month(s) of premium to {command.user_id}, "
                f"until {end_date.isoformat()}"
            )
            return Return.ok(SubscriptionRecordDTO.from_record(record, now))

        except Exception as e:
            return await self._failed(
                "GRANT_PREMIUM_FAILED", f"Failed to grant premium to {command.user_id}", e
            )


class RevokeAccess(_RecordMutation):
    """
    Use Case: Admin revocation

    Ends the current window now; the record reads as expired afterwards.
    """

    async def execute(self, user_id: str) -> Result[SubscriptionRecordDTO]:
        try:
            now = self.clock()
            record = await self.record_repo.get_by_user_id(user_id, for_update=True)

            if record is None:
                await self.uow.rollback()
                return Return.err(
                    Error(
                        code="SUBSCRIPTION_NOT_FOUND",
                        message=f"No subscription record for user {user_id}",
                        reason="Nothing to revoke",
                    )
                )

            record.status = SubscriptionStatus.EXPIRED
            record.end_date = now
            record = await self._save(record, is_new=False)

            logger.info(f"Access revoked for {user_id}")
            return Return.ok(SubscriptionRecordDTO.from_record(record, now))

        except Exception as e:
            return await self._failed("REVOKE_ACCESS_FAILED", f"Failed to revoke access for {user_id}", e)
