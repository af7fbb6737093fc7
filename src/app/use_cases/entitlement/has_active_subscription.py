"""HasActiveSubscription Use Case

Single source of truth for protected-content gates.

Caller contract: admins always see protected content. That bypass is
applied by the caller (see src.api.context.can_view_protected_content),
not here; this use case answers for billing state only.
"""

from datetime import datetime
from typing import Callable, Optional
from libs.result import Result, Return, Error, ErrorCategory
from src.app.services.access_cache import AccessCache
from src.app.repositories.subscription_record_repository import SubscriptionRecordRepository
from src.domain.entitlement import current_state
from .dtos import AccessDecisionDTO


class HasActiveSubscription:
    """
    Use Case: Decide whether an account has paid access right now

    Business Rules:
    1. has_access iff effective status is trial or premium
    2. Stale windows read as expired without any job having run
    3. Cached decisions are reused until their TTL; force_refresh skips them
    """

    def __init__(
        self,
        record_repo: SubscriptionRecordRepository,
        access_cache: Optional[AccessCache] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.record_repo = record_repo
        self.access_cache = access_cache
        self.clock = clock

    async def execute(self, user_id: str, force_refresh: bool = False) -> Result[AccessDecisionDTO]:
        if self.access_cache and not force_refresh:
            cached = await self.access_cache.get(user_id)
            if cached is not None:
                return Return.ok(AccessDecisionDTO(**cached).model_copy(update={"cached": True}))

        try:
            record = await self.record_repo.get_by_user_id(user_id)
        except Exception as e:
            return Return.err(
                Error(
                    code="ACCESS_CHECK_FAILED",
                    message="Failed to read subscription",
                    reason=str(e),
                    category=ErrorCategory.INFRASTRUCTURE,
                )
            )

        state = current_state(record, self.clock())
        decision = AccessDecisionDTO(
            user_id=user_id,
            has_access=state.grants_access,
            status=state.status,
            days_remaining=state.days_remaining,
        )

        if self.access_cache:
            await self.access_cache.set(user_id, decision.model_dump(mode="json", exclude={"cached"}))

        return Return.ok(decision)
