"""Admin voucher management: CreateVoucher and DeactivateVoucher"""

import logging
import random
from typing import Optional
from sqlalchemy.exc import IntegrityError
from libs.result import Result, Return, Error, ErrorCategory
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.voucher_repository import VoucherRepository
from src.domain.voucher import Voucher, VoucherStatus, normalize_code
from .dtos import CreateVoucherCommandDTO, VoucherDTO

logger = logging.getLogger(__name__)

CODE_GENERATION_ATTEMPTS = 5


def generate_voucher_code(rng: Optional[random.Random] = None) -> str:
    """PREMIUM-NNNN-NNNN with two random 4-digit groups"""
    rng = rng or random.SystemRandom()
    return f"PREMIUM-{rng.randint(1000, 9999)}-{rng.randint(1000, 9999)}"


class CreateVoucher:
    """
    Use Case: Create a voucher

    Business Rules:
    1. Codes are stored normalized and must be unique
    2. Without an explicit code, a PREMIUM-NNNN-NNNN code is generated
    3. New vouchers start active with zero uses
    """

    def __init__(self, uow: UnitOfWork, voucher_repo: VoucherRepository):
        self.uow = uow
        self.voucher_repo = voucher_repo

    async def execute(self, command: CreateVoucherCommandDTO) -> Result[VoucherDTO]:
        explicit = command.code is not None
        code = normalize_code(command.code) if explicit else None

        if explicit and not code:
            return Return.err(
                Error(
                    code="VALIDATION_ERROR",
                    message="Voucher code cannot be blank",
                    category=ErrorCategory.VALIDATION,
                )
            )

        try:
            if not explicit:
                code = await self._unused_code()

            if await self.voucher_repo.get_by_code(code):
                return Return.err(self._code_taken(code))

            voucher = Voucher(
                code=code,
                duration_months=command.duration_months,
                amount=command.amount,
                plan_type=command.plan_type,
                max_uses=command.max_uses,
                current_uses=0,
                status=VoucherStatus.ACTIVE,
                expires_at=command.expires_at,
                notes=command.notes,
                created_by=command.created_by,
            )

            try:
                voucher = await self.voucher_repo.create(voucher)
            except IntegrityError:
                await self.uow.rollback()
                return Return.err(self._code_taken(code))

            await self.uow.commit()

            logger.info(f"Voucher {code} created ({command.max_uses} use(s), {command.duration_months} month(s))")
            return Return.ok(VoucherDTO.from_entity(voucher))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="CREATE_VOUCHER_FAILED",
                    message="Failed to create voucher",
                    reason=str(e),
                    category=ErrorCategory.INFRASTRUCTURE,
                )
            )

    async def _unused_code(self) -> str:
        code = generate_voucher_code()
        for _ in range(CODE_GENERATION_ATTEMPTS - 1):
            if not await self.voucher_repo.get_by_code(code):
                break
            code = generate_voucher_code()
        return code

    @staticmethod
    def _code_taken(code: str) -> Error:
        return Error(
            code="VOUCHER_CODE_TAKEN",
            message=f"Voucher code {code} already exists",
            reason="codes are unique",
        )


class DeactivateVoucher:
    """
    Use Case: Deactivate a voucher

    Idempotent; an inactive voucher can no longer be redeemed but keeps
    its usage history.
    """

    def __init__(self, uow: UnitOfWork, voucher_repo: VoucherRepository):
        self.uow = uow
        self.voucher_repo = voucher_repo

    async def execute(self, voucher_id: int) -> Result[VoucherDTO]:
        try:
            voucher = await self.voucher_repo.get_by_id(voucher_id)
            if not voucher:
                return Return.err(
                    Error(
                        code="VOUCHER_NOT_FOUND",
                        message=f"Voucher {voucher_id} not found",
                    )
                )

            if voucher.status != VoucherStatus.INACTIVE:
                voucher.status = VoucherStatus.INACTIVE
                voucher = await self.voucher_repo.update(voucher)
                await self.uow.commit()
                logger.info(f"Voucher {voucher.code} deactivated")

            return Return.ok(VoucherDTO.from_entity(voucher))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="DEACTIVATE_VOUCHER_FAILED",
                    message="Failed to deactivate voucher",
                    reason=str(e),
                    category=ErrorCategory.INFRASTRUCTURE,
                )
            )
