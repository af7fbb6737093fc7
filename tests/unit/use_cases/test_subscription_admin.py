"""Unit tests for StartTrial, GrantPremium and RevokeAccess"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.entitlement.dtos import GrantPremiumCommandDTO
from src.app.use_cases.entitlement.subscription_admin import GrantPremium, RevokeAccess, StartTrial
from src.domain.plan import PlanType
from src.domain.subscription_record import SubscriptionRecord, SubscriptionStatus


@pytest.fixture
def mock_record_repo():
    repo = MagicMock()
    repo.get_by_user_id = AsyncMock(return_value=None)
    repo.create = AsyncMock(side_effect=lambda r: r)
    repo.update = AsyncMock(side_effect=lambda r: r)
    return repo


@pytest.fixture
def deps(mock_uow, mock_record_repo, mock_access_cache, clock):
    return {
        "uow": mock_uow,
        "record_repo": mock_record_repo,
        "access_cache": mock_access_cache,
        "clock": clock,
    }


@pytest.mark.asyncio
class TestStartTrial:

    async def test_new_account_gets_seven_day_trial(self, deps, mock_record_repo, mock_access_cache, now):
        result = await StartTrial(**deps).execute("user_1")

        assert result.is_ok()
        assert result.value.status == SubscriptionStatus.TRIAL
        assert result.value.end_date == now + timedelta(days=7)
        assert result.value.days_remaining == 7
        mock_record_repo.create.assert_awaited_once()
        mock_access_cache.invalidate.assert_awaited_once_with("user_1")

    async def test_trial_length_is_configurable(self, deps, now):
        result = await StartTrial(trial_days=14, **deps).execute("user_1")

        assert result.value.end_date == now + timedelta(days=14)

    async def test_placeholder_record_is_upgraded(self, deps, mock_record_repo):
        """A free record created by device registration becomes the trial"""
        placeholder = SubscriptionRecord(id=1, user_id="user_1", status=SubscriptionStatus.FREE)
        mock_record_repo.get_by_user_id = AsyncMock(return_value=placeholder)

        result = await StartTrial(**deps).execute("user_1")

        assert result.value.status == SubscriptionStatus.TRIAL
        mock_record_repo.update.assert_awaited_once_with(placeholder)
        mock_record_repo.create.assert_not_awaited()

    async def test_existing_subscription_is_left_alone(self, deps, mock_record_repo, mock_uow, now):
        record = SubscriptionRecord(
            id=1, user_id="user_1", status=SubscriptionStatus.PREMIUM, end_date=now + timedelta(days=40)
        )
        mock_record_repo.get_by_user_id = AsyncMock(return_value=record)

        result = await StartTrial(**deps).execute("user_1")

        assert result.value.status == SubscriptionStatus.PREMIUM
        mock_record_repo.update.assert_not_awaited()
        mock_uow.commit.assert_not_awaited()

    async def test_used_trial_is_not_restarted(self, deps, mock_record_repo, now):
        record = SubscriptionRecord(
            id=1, user_id="user_1", status=SubscriptionStatus.TRIAL, end_date=now - timedelta(days=1)
        )
        mock_record_repo.get_by_user_id = AsyncMock(return_value=record)

        result = await StartTrial(**deps).execute("user_1")

        assert result.value.status == SubscriptionStatus.EXPIRED
        mock_record_repo.update.assert_not_awaited()


@pytest.mark.asyncio
class TestGrantPremium:

    async def test_grant_to_new_account(self, deps, mock_record_repo):
        result = await GrantPremium(**deps).execute(
            GrantPremiumCommandDTO(user_id="user_1", months=6, plan_type=PlanType.YEARLY)
        )

        assert result.is_ok()
        assert result.value.status == SubscriptionStatus.PREMIUM
        assert result.value.plan_type == PlanType.YEARLY
        assert result.value.end_date == datetime(2024, 9, 15, 12, 0, 0)

    async def test_grant_stacks_and_keeps_payment_counters(self, deps, mock_record_repo, now):
        record = SubscriptionRecord(
            id=1,
            user_id="user_1",
            status=SubscriptionStatus.PREMIUM,
            plan_type=PlanType.MONTHLY,
            end_date=now + timedelta(days=5),
            total_spent=Decimal("5.00"),
            total_payments=1,
        )
        mock_record_repo.get_by_user_id = AsyncMock(return_value=record)

        result = await GrantPremium(**deps).execute(GrantPremiumCommandDTO(user_id="user_1", months=1))

        assert result.is_ok()
        assert record.end_date == datetime(2024, 4, 20, 12, 0, 0)
        assert record.plan_type == PlanType.MONTHLY
        assert record.total_spent == Decimal("5.00")
        assert record.total_payments == 1


@pytest.mark.asyncio
class TestRevokeAccess:

    async def test_revoke_ends_window_now(self, deps, mock_record_repo, mock_access_cache, now):
        record = SubscriptionRecord(
            id=1, user_id="user_1", status=SubscriptionStatus.PREMIUM, end_date=now + timedelta(days=30)
        )
        mock_record_repo.get_by_user_id = AsyncMock(return_value=record)

        result = await RevokeAccess(**deps).execute("user_1")

        assert result.is_ok()
        assert result.value.status == SubscriptionStatus.EXPIRED
        assert record.end_date == now
        mock_access_cache.invalidate.assert_awaited_once_with("user_1")

    async def test_revoke_unknown_account(self, deps, mock_uow):
        result = await RevokeAccess(**deps).execute("ghost")

        assert result.is_err()
        assert result.error.code == "SUBSCRIPTION_NOT_FOUND"
        mock_uow.rollback.assert_awaited_once()

    async def test_revoke_failure(self, deps, mock_record_repo):
        mock_record_repo.get_by_user_id = AsyncMock(side_effect=Exception("db down"))

        result = await RevokeAccess(**deps).execute("user_1")

        assert result.error.code == "REVOKE_ACCESS_FAILED"
