"""
History Use Cases

Read-only views over payments and voucher redemptions.
"""

from typing import Dict
from libs.result import Result, Return, Error, ErrorCategory
from src.app.repositories.payment_repository import PaymentRepository
from src.app.repositories.voucher_repository import VoucherRepository, VoucherUsageRepository
from src.domain.voucher import Voucher
from .dtos import (
    PaymentDTO,
    PaymentHistoryDTO,
    VoucherDTO,
    VoucherHistoryDTO,
    VoucherStatsDTO,
    VoucherUsageDTO,
)


class ListPaymentHistory:
    """
    Use case: View payment history

    Retrieves a page of the user's payments in every status.
    Payments are ordered by created_at DESC (most recent first).
    """

    def __init__(self, payment_repo: PaymentRepository):
        self.payment_repo = payment_repo

    async def execute(self, user_id: str, limit: int = 20, offset: int = 0) -> Result[PaymentHistoryDTO]:
        """
        List payments for a user with pagination.

        Args:
            user_id: Account identifier
            limit: Maximum number of payments to return (default 20)
            offset: Number of payments to skip (default 0)

        Returns:
            Result[PaymentHistoryDTO]: Paginated payment list
        """
        try:
            payments, total = await self.payment_repo.list_by_user(user_id, limit=limit, offset=offset)
        except Exception as e:
            return Return.err(
                Error(
                    code="LIST_PAYMENTS_FAILED",
                    message="Failed to load payment history",
                    reason=str(e),
                    category=ErrorCategory.INFRASTRUCTURE,
                )
            )

        return Return.ok(
            PaymentHistoryDTO(
                user_id=user_id,
                payments=[PaymentDTO.from_entity(payment) for payment in payments],
                total=total,
                limit=limit,
                offset=offset,
            )
        )


class GetVoucherStats:
    """
    Use case: Voucher usage statistics (admin)

    Business Rules:
    1. Unknown voucher id -> VOUCHER_NOT_FOUND
    2. remaining_uses never goes below zero
    """

    def __init__(self, voucher_repo: VoucherRepository, usage_repo: VoucherUsageRepository):
        self.voucher_repo = voucher_repo
        self.usage_repo = usage_repo

    async def execute(self, voucher_id: int) -> Result[VoucherStatsDTO]:
        try:
            voucher = await self.voucher_repo.get_by_id(voucher_id)
            if not voucher:
                return Return.err(
                    Error(
                        code="VOUCHER_NOT_FOUND",
                        message=f"Voucher {voucher_id} not found",
                        reason="Unknown voucher id",
                    )
                )

            usages = await self.usage_repo.list_by_voucher(voucher_id)

            return Return.ok(
                VoucherStatsDTO(
                    voucher=VoucherDTO.from_entity(voucher),
                    usages=[VoucherUsageDTO.from_entity(usage, voucher) for usage in usages],
                    remaining_uses=max(voucher.max_uses - voucher.current_uses, 0),
                )
            )

        except Exception as e:
            return Return.err(
                Error(
                    code="VOUCHER_STATS_FAILED",
                    message="Failed to load voucher statistics",
                    reason=str(e),
                    category=ErrorCategory.INFRASTRUCTURE,
                )
            )


class ListVoucherHistory:
    """Vouchers a user redeemed, newest first, with the voucher terms attached"""

    def __init__(self, voucher_repo: VoucherRepository, usage_repo: VoucherUsageRepository):
        self.voucher_repo = voucher_repo
        self.usage_repo = usage_repo

    async def execute(self, user_id: str) -> Result[VoucherHistoryDTO]:
        try:
            usages = await self.usage_repo.list_by_user(user_id)

            vouchers: Dict[int, Voucher] = {}
            for usage in usages:
                if usage.voucher_id not in vouchers:
                    vouchers[usage.voucher_id] = await self.voucher_repo.get_by_id(usage.voucher_id)

        except Exception as e:
            return Return.err(
                Error(
                    code="LIST_VOUCHER_HISTORY_FAILED",
                    message="Failed to load voucher history",
                    reason=str(e),
                    category=ErrorCategory.INFRASTRUCTURE,
                )
            )

        return Return.ok(
            VoucherHistoryDTO(
                user_id=user_id,
                usages=[VoucherUsageDTO.from_entity(usage, vouchers.get(usage.voucher_id)) for usage in usages],
            )
        )
