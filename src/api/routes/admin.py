"""Admin API Routes

Direct subscription overrides. They bypass vouchers and payments but keep
the same record invariants and locking.
"""

from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.subscription_record_repository import SqlAlchemySubscriptionRecordRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.context import require_admin
from src.api.error import ClientError
from src.api.schemas.entitlement_request import GrantPremiumRequestSchema
from src.app.services.access_cache import AccessCache
from src.app.use_cases.entitlement.dtos import GrantPremiumCommandDTO, RequestContext, SubscriptionRecordDTO
from src.app.use_cases.entitlement.subscription_admin import GrantPremium, RevokeAccess, StartTrial
from src.depends import get_access_cache, get_session

router = APIRouter(prefix="/admin/subscriptions", tags=["Admin"])


@router.post(
    "/{user_id}/grant",
    response_model=SubscriptionRecordDTO,
    status_code=status.HTTP_200_OK,
)
async def grant_premium(
    user_id: str,
    request: GrantPremiumRequestSchema,
    context: RequestContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
    access_cache: AccessCache = Depends(get_access_cache),
):
    """Add premium months to an account."""
    use_case = GrantPremium(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemySubscriptionRecordRepository(session),
        access_cache,
    )
    result = await use_case.execute(
        GrantPremiumCommandDTO(user_id=user_id, months=request.months, plan_type=request.plan_type)
    )

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post(
    "/{user_id}/revoke",
    response_model=SubscriptionRecordDTO,
    status_code=status.HTTP_200_OK,
)
async def revoke_access(
    user_id: str,
    context: RequestContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
    access_cache: AccessCache = Depends(get_access_cache),
):
    """End an account's access now."""
    use_case = RevokeAccess(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemySubscriptionRecordRepository(session),
        access_cache,
    )
    result = await use_case.execute(user_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post(
    "/{user_id}/trial",
    response_model=SubscriptionRecordDTO,
    status_code=status.HTTP_200_OK,
)
async def start_trial(
    user_id: str,
    context: RequestContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
    access_cache: AccessCache = Depends(get_access_cache),
):
    """
    Open the free trial of a newly created account.

    Called by the sign-up flow with an admin role. Idempotent.
    """
    use_case = StartTrial(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemySubscriptionRecordRepository(session),
        access_cache,
        trial_days=ApplicationConfig.TRIAL_DAYS,
    )
    result = await use_case.execute(user_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value
