"""Request-scoped caller identity

The identity provider authenticates upstream and forwards the caller as
X-User-Id / X-User-Role headers. Each request gets its own RequestContext.
"""

import asyncio
from typing import Optional
from fastapi import Depends, Header, Request
from libs.result import Error
from src.api.error import ClientError
from src.app.use_cases.entitlement.dtos import AccessDecisionDTO, RequestContext
from src.domain.account import AccountRole


async def get_request_context(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> RequestContext:
    if not x_user_id:
        raise ClientError(Error(code="UNAUTHENTICATED", message="Missing X-User-Id header"))

    try:
        role = AccountRole((x_user_role or AccountRole.SPECTATOR.value).lower())
    except ValueError:
        role = AccountRole.SPECTATOR

    return RequestContext(user_id=x_user_id, role=role)


async def require_admin(context: RequestContext = Depends(get_request_context)) -> RequestContext:
    if not context.is_admin:
        raise ClientError(Error(code="FORBIDDEN", message="Admin role required"))
    return context


def ensure_self_or_admin(context: RequestContext, user_id: str) -> None:
    if context.user_id != user_id and not context.is_admin:
        raise ClientError(Error(code="FORBIDDEN", message="Cannot act on another account"))


def can_view_protected_content(context: RequestContext, decision: AccessDecisionDTO) -> bool:
    """
    Protected-content gate

    Admins always see protected content regardless of billing state;
    everyone else needs an active trial or premium.
    """
    return context.is_admin or decision.has_access


async def cancel_on_disconnect(request: Request, cancel_event: asyncio.Event, check_interval: float = 0.5) -> None:
    """
    Set cancel_event once the client goes away

    Starlette does not cancel a handler when its client disconnects.
    Returns once the event is set, by this watcher or by the caller.
    """
    while not cancel_event.is_set():
        if await request.is_disconnected():
            cancel_event.set()
            return
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=check_interval)
        except asyncio.TimeoutError:
            continue
