"""ConfirmPayment Use Case

Applies a gateway's final verdict to a pending payment. Webhook and client
poll may both deliver the same verdict; only the first transition grants
entitlement.
"""

import logging
from datetime import datetime
from typing import Callable, Optional
from libs.result import Result, Return, Error, ErrorCategory
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.access_cache import AccessCache
from src.app.repositories.payment_repository import PaymentRepository
from src.app.repositories.subscription_record_repository import SubscriptionRecordRepository
from src.domain.entitlement import extended_end_date
from src.domain.payment import FINAL_PAYMENT_STATUSES, Payment, PaymentStatus
from src.domain.subscription_record import SubscriptionRecord, SubscriptionStatus
from .dtos import (
    ConfirmPaymentCommandDTO,
    ConfirmPaymentResponseDTO,
    PaymentDTO,
    SubscriptionRecordDTO,
)

logger = logging.getLogger(__name__)


class ConfirmPayment:
    """
    Use Case: Record the final status of a payment

    Business Rules:
    1. Only completed/failed are accepted as verdicts
    2. pending -> final happens once, via a conditional UPDATE
    3. The first completed transition extends premium and bumps
       total_spent/total_payments exactly once
    4. Repeating the same verdict is a no-op (already_processed)
    5. A conflicting verdict on a resolved payment is rejected
    6. A reported amount must match the stored amount

    Flow:
    1. Validate verdict
    2. Load payment, check amount
    3. Short-circuit payments already resolved
    4. Lock the payer's subscription record
    5. Conditional status transition (affected rows decide)
    6. On completed: extend premium window, update payment counters
    7. Commit and drop cached access decision
    """

    def __init__(
        self,
        uow: UnitOfWork,
        payment_repo: PaymentRepository,
        record_repo: SubscriptionRecordRepository,
        access_cache: Optional[AccessCache] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.uow = uow
        self.payment_repo = payment_repo
        self.record_repo = record_repo
        self.access_cache = access_cache
        self.clock = clock

    async def execute(self, command: ConfirmPaymentCommandDTO) -> Result[ConfirmPaymentResponseDTO]:
        """
        Execute payment confirmation

        Args:
            command: ConfirmPaymentCommandDTO with payment_id, transaction_id, status, amount

        Returns:
            Result[ConfirmPaymentResponseDTO]: Payment and resulting subscription, or error
        """
        # Step 1: Validate verdict
        if command.status not in FINAL_PAYMENT_STATUSES:
            return Return.err(
                Error(
                    code="VALIDATION_ERROR",
                    message="Payment status must be completed or failed",
                    reason=f"status={command.status.value}",
                    category=ErrorCategory.VALIDATION,
                )
            )

        try:
            now = self.clock()

            # Step 2: Load payment
            payment = await self.payment_repo.get_by_id(command.payment_id)
            if not payment:
                return Return.err(
                    Error(
                        code="PAYMENT_NOT_FOUND",
                        message=f"Payment {command.payment_id} not found",
                        reason="Unknown payment id",
                    )
                )

            if command.amount is not None and command.amount != payment.amount:
                logger.warning(
                    f"Amount mismatch on payment {payment.id}: "
                    f"reported={command.amount}, stored={payment.amount}"
                )
                return Return.err(
                    Error(
                        code="PAYMENT_AMOUNT_MISMATCH",
                        message="Reported amount does not match the payment",
                        reason=f"reported={command.amount}, stored={payment.amount}",
                    )
                )

            # Step 3: Already resolved
            if payment.status != PaymentStatus.PENDING:
                return await self._already_resolved(payment, command, now)

            # Step 4: Serialize writers for this user
            record = await self.record_repo.get_by_user_id(payment.user_id, for_update=True)

            # Step 5: Transition guard
            transitioned = await self.payment_repo.transition_status(
                payment.id, command.status, command.transaction_id
            )
            if not transitioned:
                # Someone else resolved it between our read and our update
                await self.uow.rollback()
                payment = await self.payment_repo.get_by_id(command.payment_id)
                return await self._already_resolved(payment, command, now)

            # Step 6: Grant entitlement on completion
            if command.status == PaymentStatus.COMPLETED:
                record = await self._apply_completed(record, payment, now)

            # Step 7: Commit
            await self.uow.commit()

            if self.access_cache:
                await self.access_cache.invalidate(payment.user_id)

            logger.info(
                f"Payment {payment.id} for {payment.user_id} moved to {command.status.value}"
            )

            payment_dto = PaymentDTO.from_entity(payment).model_copy(
                update={
                    "status": command.status,
                    "transaction_id": command.transaction_id or payment.transaction_id,
                }
            )
            return Return.ok(
                ConfirmPaymentResponseDTO(
                    payment=payment_dto,
                    subscription=SubscriptionRecordDTO.from_record(record, now) if record else None,
                )
            )

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Payment confirmation failed for {command.payment_id}: {e}")
            return Return.err(
                Error(
                    code="CONFIRM_PAYMENT_FAILED",
                    message="Failed to confirm payment",
                    reason=str(e),
                    category=ErrorCategory.INFRASTRUCTURE,
                )
            )

    async def _apply_completed(
        self,
        record: Optional[SubscriptionRecord],
        payment: Payment,
        now: datetime,
    ) -> SubscriptionRecord:
        end_date = extended_end_date(record, payment.subscription_duration, now)

        if record is None:
            record = SubscriptionRecord(
                user_id=payment.user_id,
                status=SubscriptionStatus.PREMIUM,
                plan_type=payment.plan_type,
                end_date=end_date,
                last_payment_date=now,
                payment_amount=payment.amount,
                total_spent=payment.amount,
                total_payments=1,
            )
            return await self.record_repo.create(record)

        record.status = SubscriptionStatus.PREMIUM
        record.plan_type = payment.plan_type
        record.end_date = end_date
        record.last_payment_date = now
        record.payment_amount = payment.amount
        record.total_spent = record.total_spent + payment.amount
        record.total_payments = record.total_payments + 1
        record.last_notice_key = None
        return await self.record_repo.update(record)

    async def _already_resolved(
        self,
        payment: Payment,
        command: ConfirmPaymentCommandDTO,
        now: datetime,
    ) -> Result[ConfirmPaymentResponseDTO]:
        if payment.status != command.status:
            return Return.err(
                Error(
                    code="PAYMENT_ALREADY_RESOLVED",
                    message=f"Payment is already {payment.status.value}",
                    reason=f"stored={payment.status.value}, reported={command.status.value}",
                )
            )

        record = await self.record_repo.get_by_user_id(payment.user_id)
        return Return.ok(
            ConfirmPaymentResponseDTO(
                payment=PaymentDTO.from_entity(payment),
                subscription=SubscriptionRecordDTO.from_record(record, now) if record else None,
                already_processed=True,
            )
        )
