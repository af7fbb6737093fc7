"""RedeemVoucher Use Case

Turns a promo code into premium time. Concurrent redemptions of the same
code are decided by an atomic conditional update on the voucher row.
"""

import logging
from datetime import datetime
from typing import Callable, Optional
from sqlalchemy.exc import IntegrityError
from libs.result import Result, Return, Error, ErrorCategory
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.access_cache import AccessCache
from src.app.repositories.voucher_repository import VoucherRepository, VoucherUsageRepository
from src.app.repositories.subscription_record_repository import SubscriptionRecordRepository
from src.domain.entitlement import extended_end_date
from src.domain.subscription_record import SubscriptionRecord, SubscriptionStatus
from src.domain.voucher import VoucherUsage, normalize_code
from .dtos import RedeemVoucherCommandDTO, RedeemVoucherResponseDTO
from .voucher_checks import (
    already_redeemed_error,
    exhausted_error,
    invalid_code_error,
    voucher_rejection,
)

logger = logging.getLogger(__name__)


class RedeemVoucher:
    """
    Use Case: Redeem a voucher code for premium access

    Business Rules:
    1. Codes match case-insensitively after trimming
    2. Voucher must exist, be active, not expired and not exhausted
    3. A user redeems a given code at most once
    4. At most max_uses redemptions ever succeed, even under races
    5. Usage row, counter increment and subscription update commit together

    Flow:
    1. Normalize code and load voucher
    2. Run redeemability checks
    3. Reject if this user already redeemed the code
    4. Lock the user's subscription record (SELECT FOR UPDATE)
    5. Claim one use with a conditional UPDATE (affected rows decide)
    6. Insert usage row (unique on voucher + user)
    7. Extend premium window
    8. Commit and drop cached access decision
    """

    def __init__(
        self,
        uow: UnitOfWork,
        voucher_repo: VoucherRepository,
        usage_repo: VoucherUsageRepository,
        record_repo: SubscriptionRecordRepository,
        access_cache: Optional[AccessCache] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.uow = uow
        self.voucher_repo = voucher_repo
        self.usage_repo = usage_repo
        self.record_repo = record_repo
        self.access_cache = access_cache
        self.clock = clock

    async def execute(self, command: RedeemVoucherCommandDTO) -> Result[RedeemVoucherResponseDTO]:
        """
        Execute voucher redemption

        Args:
            command: RedeemVoucherCommandDTO with code and user_id

        Returns:
            Result[RedeemVoucherResponseDTO]: New premium window or the rule that failed
        """
        code = normalize_code(command.code)
        if not code:
            return Return.err(invalid_code_error())

        try:
            now = self.clock()

            # Step 1: Load voucher
            voucher = await self.voucher_repo.get_by_code(code)

            # Step 2: Redeemability checks on the snapshot
            rejection = voucher_rejection(voucher, code, now)
            if rejection:
                return Return.err(rejection)

            # Step 3: Per-user guard
            existing_usage = await self.usage_repo.get_by_voucher_and_user(voucher.id, command.user_id)
            if existing_usage:
                return Return.err(already_redeemed_error(code, command.user_id))

            # Step 4: Serialize writers for this user
            record = await self.record_repo.get_by_user_id(command.user_id, for_update=True)

            # Step 5: Claim a use; losing the race means the voucher ran out
            claimed = await self.voucher_repo.claim_use(voucher.id)
            if not claimed:
                error = exhausted_error(voucher)
                await self.uow.rollback()
                logger.info(f"Voucher {code} exhausted while redeeming for {command.user_id}")
                return Return.err(error)

            # Step 6: Usage row
            try:
                await self.usage_repo.create(
                    VoucherUsage(voucher_id=voucher.id, user_id=command.user_id, used_at=now)
                )
            except IntegrityError:
                await self.uow.rollback()
                return Return.err(already_redeemed_error(code, command.user_id))

            # Step 7: Extend premium window
            end_date = extended_end_date(record, voucher.duration_months, now)

            if record is None:
                record = SubscriptionRecord(
                    user_id=command.user_id,
                    status=SubscriptionStatus.PREMIUM,
                    plan_type=voucher.plan_type,
                    end_date=end_date,
                )
                await self.record_repo.create(record)
            else:
                record.status = SubscriptionStatus.PREMIUM
                record.plan_type = voucher.plan_type
                record.end_date = end_date
                record.last_notice_key = None
                await self.record_repo.update(record)

            # Step 8: Commit
            await self.uow.commit()

            if self.access_cache:
                await self.access_cache.invalidate(command.user_id)

            logger.info(
                f"Voucher {code} redeemed by {command.user_id}: "
                f"{voucher.duration_months} month(s), premium until {end_date.isoformat()}"
            )

            return Return.ok(
                RedeemVoucherResponseDTO(
                    code=code,
                    plan_type=voucher.plan_type,
                    duration_months=voucher.duration_months,
                    end_date=end_date,
                )
            )

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Voucher redemption failed for {command.user_id}: {e}")
            return Return.err(
                Error(
                    code="REDEEM_VOUCHER_FAILED",
                    message="Failed to redeem voucher",
                    reason=str(e),
                    category=ErrorCategory.INFRASTRUCTURE,
                )
            )
