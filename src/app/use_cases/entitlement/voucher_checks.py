"""Redeemability checks shared by ValidateVoucher and RedeemVoucher"""

from datetime import datetime
from typing import Optional
from libs.result import Error, ErrorCategory
from src.domain.voucher import Voucher, VoucherStatus


def invalid_code_error() -> Error:
    return Error(
        code="VALIDATION_ERROR",
        message="Voucher code is required",
        reason="code is empty after trimming",
        category=ErrorCategory.VALIDATION,
    )


def voucher_rejection(voucher: Optional[Voucher], code: str, now: datetime) -> Optional[Error]:
    """First rule the voucher fails, or None when it can be redeemed"""
    if voucher is None:
        return Error(
            code="VOUCHER_NOT_FOUND",
            message="Invalid voucher code",
            reason=f"No voucher with code {code}",
        )

    if voucher.status != VoucherStatus.ACTIVE:
        return Error(
            code="VOUCHER_INACTIVE",
            message="This voucher has been deactivated",
            reason=f"status={voucher.status.value}",
        )

    if voucher.is_expired(now):
        return Error(
            code="VOUCHER_EXPIRED",
            message="This voucher has expired",
            reason=f"expires_at={voucher.expires_at.isoformat()}",
        )

    if voucher.is_exhausted():
        return Error(
            code="VOUCHER_EXHAUSTED",
            message="This voucher has already been used",
            reason=f"current_uses={voucher.current_uses}, max_uses={voucher.max_uses}",
        )

    return None


def already_redeemed_error(code: str, user_id: str) -> Error:
    return Error(
        code="VOUCHER_ALREADY_REDEEMED",
        message="You have already redeemed this voucher",
        reason=f"usage exists for code={code}, user={user_id}",
    )


def exhausted_error(voucher: Voucher) -> Error:
    return Error(
        code="VOUCHER_EXHAUSTED",
        message="This voucher has already been used",
        reason=f"conditional claim lost, max_uses={voucher.max_uses}",
    )
