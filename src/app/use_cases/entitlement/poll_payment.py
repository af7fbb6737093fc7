"""PollPaymentStatus Use Case

Waits for a payment to leave pending, reading it in a fresh session on
every tick so nothing is locked while sleeping.
"""

import asyncio
import logging
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.payment_status_reader import PaymentStatusReader
from src.domain.payment import FINAL_PAYMENT_STATUSES, PaymentStatus
from .dtos import PollOutcome, PollPaymentCommandDTO, PollResultDTO

logger = logging.getLogger(__name__)


class PollPaymentStatus:
    """
    Use Case: Poll a payment until it is resolved

    Business Rules:
    1. timeout is an outcome, not an error
    2. Cancellation through the cancel event returns a cancelled outcome;
       task cancellation propagates as usual
    3. Read failures are logged and retried on the next tick
    4. An unknown payment id fails immediately
    """

    def __init__(self, reader: PaymentStatusReader):
        self.reader = reader

    async def execute(
        self,
        command: PollPaymentCommandDTO,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Result[PollResultDTO]:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + command.timeout_seconds
        attempts = 0
        last_status: Optional[PaymentStatus] = None

        def outcome(kind: PollOutcome) -> Result[PollResultDTO]:
            return Return.ok(
                PollResultDTO(
                    payment_id=command.payment_id,
                    outcome=kind,
                    status=last_status,
                    attempts=attempts,
                )
            )

        try:
            while True:
                if cancel_event is not None and cancel_event.is_set():
                    return outcome(PollOutcome.CANCELLED)

                attempts += 1
                try:
                    status = await self.reader.get_status(command.payment_id)
                except Exception as e:
                    logger.warning(f"Poll read {attempts} for payment {command.payment_id} failed: {e}")
                else:
                    if status is None:
                        return Return.err(
                            Error(
                                code="PAYMENT_NOT_FOUND",
                                message=f"Payment {command.payment_id} not found",
                                reason="Unknown payment id",
                            )
                        )
                    last_status = status
                    if status in FINAL_PAYMENT_STATUSES:
                        return outcome(PollOutcome.RESOLVED)

                remaining = deadline - loop.time()
                if remaining <= 0:
                    logger.info(f"Polling payment {command.payment_id} timed out after {attempts} read(s)")
                    return outcome(PollOutcome.TIMEOUT)

                wait = min(command.interval_seconds, remaining)
                if cancel_event is None:
                    await asyncio.sleep(wait)
                    continue

                try:
                    await asyncio.wait_for(cancel_event.wait(), timeout=wait)
                except asyncio.TimeoutError:
                    continue
                return outcome(PollOutcome.CANCELLED)

        except asyncio.CancelledError:
            logger.info(f"Polling payment {command.payment_id} cancelled")
            raise
