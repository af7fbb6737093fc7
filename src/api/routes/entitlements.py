"""Entitlement API Routes

Access decisions consumed by every protected-content gate.
"""

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlmodel.ext.asyncio.session import AsyncSession

from libs.result import Error
from src.adapter.repositories.subscription_record_repository import SqlAlchemySubscriptionRecordRepository
from src.api.context import can_view_protected_content, ensure_self_or_admin, get_request_context
from src.api.error import ClientError
from src.app.services.access_cache import AccessCache
from src.app.use_cases.entitlement.dtos import AccessDecisionDTO, RequestContext
from src.app.use_cases.entitlement.has_active_subscription import HasActiveSubscription
from src.depends import get_access_cache, get_session

router = APIRouter(prefix="/entitlements", tags=["Entitlements"])


class ProtectedContentResponse(BaseModel):
    allowed: bool
    admin_bypass: bool
    decision: AccessDecisionDTO


@router.get(
    "/{user_id}/access",
    response_model=AccessDecisionDTO,
    status_code=status.HTTP_200_OK,
)
async def get_access(
    user_id: str,
    force_refresh: bool = Query(default=False, description="Bypass the access cache"),
    context: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
    access_cache: AccessCache = Depends(get_access_cache),
):
    """
    Does the account currently have paid access.

    Clients re-check this every 10 seconds; answers may be served from a
    short-lived cache unless `force_refresh=true`. Admin bypass is not
    applied here (see `/entitlements/me/protected-content`).

    **Returns:**
    - 200: Access decision
    - 403: Asking about another account without admin role
    """
    ensure_self_or_admin(context, user_id)

    use_case = HasActiveSubscription(SqlAlchemySubscriptionRecordRepository(session), access_cache)
    result = await use_case.execute(user_id, force_refresh=force_refresh)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get(
    "/me/protected-content",
    response_model=ProtectedContentResponse,
    status_code=status.HTTP_200_OK,
    responses={
        402: {
            "description": "No active subscription",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "ACCESS_EXPIRED",
                            "message": "An active subscription is required",
                            "details": {"status": "expired"}
                        }
                    }
                }
            }
        }
    }
)
async def check_protected_content(
    force_refresh: bool = Query(default=False),
    context: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
    access_cache: AccessCache = Depends(get_access_cache),
):
    """
    Protected-content gate for the calling account.

    Admins always pass; everyone else needs an active trial or premium.

    **Returns:**
    - 200: Content may be shown
    - 402: Subscription required
    """
    use_case = HasActiveSubscription(SqlAlchemySubscriptionRecordRepository(session), access_cache)
    result = await use_case.execute(context.user_id, force_refresh=force_refresh)

    if result.is_err():
        raise ClientError(result.error)

    decision = result.value
    if not can_view_protected_content(context, decision):
        raise ClientError(
            Error(
                code="ACCESS_EXPIRED",
                message="An active subscription is required",
                details={"status": decision.status.value},
            )
        )

    return ProtectedContentResponse(
        allowed=True,
        admin_bypass=context.is_admin and not decision.has_access,
        decision=decision,
    )
