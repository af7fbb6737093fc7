"""CreatePayment Use Case

Opens a pending payment priced from the plan catalog.
"""

import logging
from datetime import datetime
from typing import Callable, Optional
from libs.result import Result, Return, Error, ErrorCategory
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.payment_repository import PaymentRepository
from src.domain.payment import Payment, PaymentMethod, PaymentStatus
from src.domain.plan import PlanCatalog
from .confirm_payment import ConfirmPayment
from .dtos import ConfirmPaymentCommandDTO, CreatePaymentCommandDTO, PaymentDTO

logger = logging.getLogger(__name__)


class CreatePayment:
    """
    Use Case: Start a plan purchase

    Business Rules:
    1. Amount, currency and duration come from the plan catalog, never the client
    2. Payments start pending
    3. Simulation payments are confirmed immediately (SIM-<timestamp>)
    4. Simulation is only accepted when it is the configured gateway;
       clients cannot pick it to skip a real gateway

    Flow:
    1. Resolve plan terms
    2. Persist pending payment and commit
    3. For simulation, confirm through ConfirmPayment
    """

    def __init__(
        self,
        uow: UnitOfWork,
        payment_repo: PaymentRepository,
        plan_catalog: PlanCatalog,
        confirm_payment: Optional[ConfirmPayment] = None,
        default_method: PaymentMethod = PaymentMethod.SIMULATION,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.uow = uow
        self.payment_repo = payment_repo
        self.plan_catalog = plan_catalog
        self.confirm_payment = confirm_payment
        self.default_method = default_method
        self.clock = clock

    async def execute(self, command: CreatePaymentCommandDTO) -> Result[PaymentDTO]:
        method = command.payment_method or self.default_method

        if method == PaymentMethod.SIMULATION and self.default_method != PaymentMethod.SIMULATION:
            logger.warning(f"Simulation payment refused for {command.user_id}: gateway is {self.default_method.value}")
            return Return.err(
                Error(
                    code="PAYMENT_METHOD_NOT_ALLOWED",
                    message="Simulation payments are disabled",
                    reason=f"Configured gateway is {self.default_method.value}",
                    category=ErrorCategory.VALIDATION,
                )
            )

        try:
            # Step 1: Plan terms
            terms = self.plan_catalog.terms_for(command.plan_type)
            now = self.clock()

            # Step 2: Pending payment
            payment = Payment(
                user_id=command.user_id,
                amount=terms.price,
                currency=self.plan_catalog.currency,
                status=PaymentStatus.PENDING,
                plan_type=command.plan_type,
                subscription_duration=terms.duration_months,
                payment_method=method,
                created_at=now,
                updated_at=now,
            )
            created = await self.payment_repo.create(payment)
            await self.uow.commit()

            logger.info(
                f"Payment {created.id} opened for {command.user_id}: "
                f"{command.plan_type.value} {terms.price} {self.plan_catalog.currency} via {method.value}"
            )

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="CREATE_PAYMENT_FAILED",
                    message="Failed to create payment",
                    reason=str(e),
                    category=ErrorCategory.INFRASTRUCTURE,
                )
            )

        # Step 3: Simulated gateway settles on the spot
        if method == PaymentMethod.SIMULATION and self.confirm_payment is not None:
            confirmation = await self.confirm_payment.execute(
                ConfirmPaymentCommandDTO(
                    payment_id=created.id,
                    transaction_id=f"SIM-{int(now.timestamp() * 1000)}",
                    status=PaymentStatus.COMPLETED,
                    amount=created.amount,
                )
            )
            if confirmation.is_err():
                return Return.err(confirmation.error)
            return Return.ok(confirmation.value.payment)

        return Return.ok(PaymentDTO.from_entity(created))
