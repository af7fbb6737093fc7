"""Voucher API Routes

Redemption for users, management for admins.
"""

from typing import List
from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.repositories.subscription_record_repository import SqlAlchemySubscriptionRecordRepository
from src.adapter.repositories.voucher_repository import (
    SqlAlchemyVoucherRepository,
    SqlAlchemyVoucherUsageRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.context import get_request_context, require_admin
from src.api.error import ClientError
from src.api.schemas.entitlement_request import CreateVoucherRequestSchema, VoucherCodeRequestSchema
from src.app.services.access_cache import AccessCache
from src.app.use_cases.entitlement.dtos import (
    CreateVoucherCommandDTO,
    RedeemVoucherCommandDTO,
    RedeemVoucherResponseDTO,
    RequestContext,
    VoucherDTO,
    VoucherHistoryDTO,
    VoucherStatsDTO,
    VoucherValidationDTO,
)
from src.app.use_cases.entitlement.history import GetVoucherStats, ListVoucherHistory
from src.app.use_cases.entitlement.manage_vouchers import CreateVoucher, DeactivateVoucher
from src.app.use_cases.entitlement.redeem_voucher import RedeemVoucher
from src.app.use_cases.entitlement.validate_voucher import ValidateVoucher
from src.depends import get_access_cache, get_session

router = APIRouter(prefix="/vouchers", tags=["Vouchers"])


@router.post(
    "/redeem",
    response_model=RedeemVoucherResponseDTO,
    status_code=status.HTTP_200_OK,
    responses={
        404: {
            "description": "Unknown code",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "VOUCHER_NOT_FOUND",
                            "message": "Invalid voucher code",
                            "details": None
                        }
                    }
                }
            }
        },
        409: {
            "description": "Voucher inactive, expired, exhausted or already redeemed",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "VOUCHER_ALREADY_REDEEMED",
                            "message": "You have already redeemed this voucher",
                            "details": None
                        }
                    }
                }
            }
        }
    }
)
async def redeem_voucher(
    request: VoucherCodeRequestSchema,
    context: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
    access_cache: AccessCache = Depends(get_access_cache),
):
    """
    Redeem a voucher for the calling account.

    **Returns:**
    - 200: Premium window after redemption
    - 400: Blank code
    - 404: Unknown code
    - 409: Inactive, expired, exhausted or already redeemed by this account
    """
    use_case = RedeemVoucher(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyVoucherRepository(session),
        SqlAlchemyVoucherUsageRepository(session),
        SqlAlchemySubscriptionRecordRepository(session),
        access_cache,
    )
    result = await use_case.execute(RedeemVoucherCommandDTO(code=request.code, user_id=context.user_id))

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post(
    "/validate",
    response_model=VoucherValidationDTO,
    status_code=status.HTTP_200_OK,
)
async def validate_voucher(
    request: VoucherCodeRequestSchema,
    context: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
):
    """
    Preview a voucher without redeeming it.

    Rejections come back as `valid=false` with the rejection code in
    `reason`.
    """
    result = await ValidateVoucher(SqlAlchemyVoucherRepository(session)).execute(request.code)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get(
    "",
    response_model=List[VoucherDTO],
    status_code=status.HTTP_200_OK,
)
async def list_vouchers(
    context: RequestContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """List all vouchers, newest first (admin)."""
    vouchers = await SqlAlchemyVoucherRepository(session).list_all()
    return [VoucherDTO.from_entity(voucher) for voucher in vouchers]


@router.post(
    "",
    response_model=VoucherDTO,
    status_code=status.HTTP_201_CREATED,
)
async def create_voucher(
    request: CreateVoucherRequestSchema,
    context: RequestContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """
    Create a voucher (admin).

    Without `code`, a `PREMIUM-NNNN-NNNN` code is generated.

    **Returns:**
    - 201: Voucher created
    - 409: Code already exists
    """
    command = CreateVoucherCommandDTO(
        code=request.code,
        duration_months=request.duration_months,
        amount=request.amount,
        plan_type=request.plan_type,
        max_uses=request.max_uses,
        expires_at=request.expires_at,
        notes=request.notes,
        created_by=context.user_id,
    )
    use_case = CreateVoucher(SqlAlchemyUnitOfWork(session), SqlAlchemyVoucherRepository(session))
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post(
    "/{voucher_id}/deactivate",
    response_model=VoucherDTO,
    status_code=status.HTTP_200_OK,
)
async def deactivate_voucher(
    voucher_id: int,
    context: RequestContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Deactivate a voucher (admin). Idempotent."""
    use_case = DeactivateVoucher(SqlAlchemyUnitOfWork(session), SqlAlchemyVoucherRepository(session))
    result = await use_case.execute(voucher_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get(
    "/history",
    response_model=VoucherHistoryDTO,
    status_code=status.HTTP_200_OK,
)
async def voucher_history(
    context: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
):
    """Vouchers redeemed by the calling account, newest first."""
    use_case = ListVoucherHistory(SqlAlchemyVoucherRepository(session), SqlAlchemyVoucherUsageRepository(session))
    result = await use_case.execute(context.user_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get(
    "/{voucher_id}/usages",
    response_model=VoucherStatsDTO,
    status_code=status.HTTP_200_OK,
)
async def voucher_usages(
    voucher_id: int,
    context: RequestContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """
    Voucher statistics (admin).

    **Returns:**
    - 200: Voucher with its redemptions, newest first
    - 404: Unknown voucher
    """
    use_case = GetVoucherStats(SqlAlchemyVoucherRepository(session), SqlAlchemyVoucherUsageRepository(session))
    result = await use_case.execute(voucher_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value
