"""Unit tests for HTTP error mapping and caller context helpers"""

import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock

from libs.result import Error, ErrorCategory
from src.api.context import (
    cancel_on_disconnect,
    can_view_protected_content,
    ensure_self_or_admin,
    get_request_context,
)
from src.api.error import ClientError, error_body, status_code_for
from src.app.use_cases.entitlement.dtos import AccessDecisionDTO, RequestContext
from src.domain.account import AccountRole
from src.domain.subscription_record import SubscriptionStatus


class TestStatusCodeFor:

    @pytest.mark.parametrize(
        "code, category, expected",
        [
            ("VALIDATION_ERROR", ErrorCategory.VALIDATION, 400),
            ("PAYMENT_AMOUNT_MISMATCH", ErrorCategory.BUSINESS, 400),
            ("UNAUTHENTICATED", ErrorCategory.BUSINESS, 401),
            ("ACCESS_EXPIRED", ErrorCategory.BUSINESS, 402),
            ("FORBIDDEN", ErrorCategory.BUSINESS, 403),
            ("VOUCHER_NOT_FOUND", ErrorCategory.BUSINESS, 404),
            ("PAYMENT_NOT_FOUND", ErrorCategory.BUSINESS, 404),
            ("VOUCHER_EXHAUSTED", ErrorCategory.BUSINESS, 409),
            ("DEVICE_LIMIT_EXCEEDED", ErrorCategory.BUSINESS, 409),
            ("REDEEM_VOUCHER_FAILED", ErrorCategory.INFRASTRUCTURE, 503),
        ],
    )
    def test_mapping(self, code, category, expected):
        assert status_code_for(Error(code=code, message="m", category=category)) == expected

    def test_client_error_status_override(self):
        error = Error(code="VOUCHER_EXHAUSTED", message="m")

        assert ClientError(error).status_code == 409
        assert ClientError(error, status_code=410).status_code == 410

    def test_error_body_shape(self):
        body = error_body(Error(code="DEVICE_LIMIT_EXCEEDED", message="m", details={"device_limit": 2}))

        assert body == {"error": {"code": "DEVICE_LIMIT_EXCEEDED", "message": "m", "details": {"device_limit": 2}}}


def decision(has_access):
    return AccessDecisionDTO(
        user_id="user_1",
        has_access=has_access,
        status=SubscriptionStatus.PREMIUM if has_access else SubscriptionStatus.EXPIRED,
    )


class TestProtectedContentGate:

    def test_admin_sees_content_without_subscription(self):
        assert can_view_protected_content(RequestContext(user_id="a", role=AccountRole.ADMIN), decision(False))

    def test_expired_spectator_is_denied(self):
        assert not can_view_protected_content(RequestContext(user_id="user_1"), decision(False))

    def test_premium_spectator_is_allowed(self):
        assert can_view_protected_content(RequestContext(user_id="user_1"), decision(True))


class TestEnsureSelfOrAdmin:

    def test_self_is_allowed(self):
        ensure_self_or_admin(RequestContext(user_id="user_1"), "user_1")

    def test_admin_is_allowed(self):
        ensure_self_or_admin(RequestContext(user_id="admin", role=AccountRole.ADMIN), "user_1")

    def test_other_account_is_forbidden(self):
        with pytest.raises(ClientError) as exc_info:
            ensure_self_or_admin(RequestContext(user_id="user_2"), "user_1")

        assert exc_info.value.status_code == 403


@pytest.mark.asyncio
class TestGetRequestContext:

    async def test_missing_user_id(self):
        with pytest.raises(ClientError) as exc_info:
            await get_request_context(x_user_id=None, x_user_role=None)

        assert exc_info.value.status_code == 401

    async def test_role_is_case_insensitive(self):
        context = await get_request_context(x_user_id="user_1", x_user_role="ADMIN")

        assert context.role == AccountRole.ADMIN
        assert context.is_admin

    async def test_unknown_role_falls_back_to_spectator(self):
        context = await get_request_context(x_user_id="user_1", x_user_role="root")

        assert context.role == AccountRole.SPECTATOR


@pytest.mark.asyncio
class TestCancelOnDisconnect:

    async def test_sets_event_when_client_leaves(self):
        """
        Given: Client connected for two checks, then gone
        When: Watching the request
        Then: Event is set and the watcher returns
        """
        request = MagicMock()
        request.is_disconnected = AsyncMock(side_effect=[False, False, True])
        event = asyncio.Event()

        await asyncio.wait_for(cancel_on_disconnect(request, event, check_interval=0.01), timeout=5)

        assert event.is_set()
        assert request.is_disconnected.await_count == 3

    async def test_returns_when_event_set_elsewhere(self):
        request = MagicMock()
        request.is_disconnected = AsyncMock(return_value=False)
        event = asyncio.Event()

        watcher = asyncio.create_task(cancel_on_disconnect(request, event, check_interval=30))
        await asyncio.sleep(0.02)
        event.set()

        await asyncio.wait_for(watcher, timeout=5)
        assert request.is_disconnected.await_count == 1
