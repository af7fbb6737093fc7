"""ValidateVoucher Use Case

Side-effect free preview of a voucher redemption.
"""

from datetime import datetime
from typing import Callable
from libs.result import Result, Return, Error, ErrorCategory
from src.app.repositories.voucher_repository import VoucherRepository
from src.domain.voucher import normalize_code
from .dtos import VoucherValidationDTO
from .voucher_checks import invalid_code_error, voucher_rejection


class ValidateVoucher:
    """
    Use Case: Check whether a code could be redeemed right now

    Business Rules:
    1. Same checks as redemption, in the same order
       (not found, inactive, expired, exhausted)
    2. Read-only: current_uses is never touched
    3. A rejection is a normal outcome (valid=False), not an error
    """

    def __init__(
        self,
        voucher_repo: VoucherRepository,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.voucher_repo = voucher_repo
        self.clock = clock

    async def execute(self, code: str) -> Result[VoucherValidationDTO]:
        normalized = normalize_code(code)
        if not normalized:
            return Return.err(invalid_code_error())

        try:
            voucher = await self.voucher_repo.get_by_code(normalized)
            rejection = voucher_rejection(voucher, normalized, self.clock())

            if rejection:
                return Return.ok(
                    VoucherValidationDTO(
                        code=normalized,
                        valid=False,
                        reason=rejection.code,
                        message=rejection.message,
                    )
                )

            return Return.ok(
                VoucherValidationDTO(
                    code=normalized,
                    valid=True,
                    message="Valid voucher",
                    plan_type=voucher.plan_type,
                    amount=voucher.amount,
                    duration_months=voucher.duration_months,
                )
            )

        except Exception as e:
            return Return.err(
                Error(
                    code="VALIDATE_VOUCHER_FAILED",
                    message="Failed to validate voucher",
                    reason=str(e),
                    category=ErrorCategory.INFRASTRUCTURE,
                )
            )
