"""Unit tests for CheckSubscriptionOnLogin use case

Tests cover:
- Warning banner at the configured thresholds, sent once
- Expired banner with a single admin notification
- No banner outside the thresholds or for free accounts
"""

import pytest
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.entitlement.check_on_login import (
    CheckSubscriptionOnLogin,
    EXPIRED_MESSAGE,
    warning_message,
)
from src.app.use_cases.entitlement.dtos import NoticeSeverity
from src.domain.plan import PlanType
from src.domain.subscription_record import SubscriptionRecord, SubscriptionStatus


@pytest.fixture
def mock_dispatcher():
    """Mock notification dispatcher (fire-and-forget, synchronous API)"""
    dispatcher = MagicMock()
    dispatcher.notify_user = MagicMock()
    dispatcher.notify_admins = MagicMock()
    return dispatcher


@pytest.fixture
def mock_record_repo():
    repo = MagicMock()
    repo.get_by_user_id = AsyncMock(return_value=None)
    repo.update = AsyncMock(side_effect=lambda r: r)
    return repo


@pytest.fixture
def check_use_case(mock_uow, mock_record_repo, mock_dispatcher, clock):
    """CheckSubscriptionOnLogin with default thresholds {3, 1}"""
    return CheckSubscriptionOnLogin(
        uow=mock_uow,
        record_repo=mock_record_repo,
        dispatcher=mock_dispatcher,
        clock=clock,
    )


def premium_until(end_date, status=SubscriptionStatus.PREMIUM):
    return SubscriptionRecord(id=1, user_id="user_1", status=status, plan_type=PlanType.MONTHLY, end_date=end_date)


class TestWarningMessage:

    def test_tomorrow_wording(self):
        assert warning_message(1) == "Your subscription expires tomorrow! Renew now."

    def test_days_wording(self):
        assert warning_message(3) == "Your subscription expires in 3 days."


@pytest.mark.asyncio
class TestCheckSubscriptionOnLogin:

    async def test_one_day_left_warns_once(
        self, check_use_case, mock_record_repo, mock_dispatcher, mock_uow, now
    ):
        """
        Given: Premium ending in exactly 1 day
        When: User logs in twice
        Then: Warning banner both times; exactly one user notification
        """
        # Arrange
        record = premium_until(now + timedelta(days=1))
        mock_record_repo.get_by_user_id = AsyncMock(return_value=record)

        # Act
        first = await check_use_case.execute("user_1")
        second = await check_use_case.execute("user_1")

        # Assert
        for result in (first, second):
            assert result.is_ok()
            assert result.value.show_warning is True
            assert result.value.severity == NoticeSeverity.WARNING
            assert result.value.days_remaining == 1
            assert result.value.message == "Your subscription expires tomorrow! Renew now."

        mock_dispatcher.notify_user.assert_called_once()
        args = mock_dispatcher.notify_user.call_args.args
        assert args[0] == "user_1"
        assert "tomorrow" in args[2]
        mock_dispatcher.notify_admins.assert_not_called()
        mock_record_repo.update.assert_awaited_once()
        mock_uow.commit.assert_awaited_once()
        assert record.last_notice_key.startswith("warn1:")

    async def test_three_days_left_warns(self, check_use_case, mock_record_repo, mock_dispatcher, now):
        mock_record_repo.get_by_user_id = AsyncMock(return_value=premium_until(now + timedelta(days=3)))

        result = await check_use_case.execute("user_1")

        assert result.value.show_warning is True
        assert result.value.message == "Your subscription expires in 3 days."
        mock_dispatcher.notify_user.assert_called_once()

    async def test_crossing_thresholds_sends_new_notice(
        self, mock_uow, mock_record_repo, mock_dispatcher, now
    ):
        """The 3-day and 1-day notices for the same window are distinct"""
        record = premium_until(now + timedelta(days=3))
        mock_record_repo.get_by_user_id = AsyncMock(return_value=record)

        await CheckSubscriptionOnLogin(mock_uow, mock_record_repo, mock_dispatcher, clock=lambda: now).execute("user_1")
        later = now + timedelta(days=2)
        await CheckSubscriptionOnLogin(mock_uow, mock_record_repo, mock_dispatcher, clock=lambda: later).execute("user_1")

        assert mock_dispatcher.notify_user.call_count == 2

    async def test_two_days_left_shows_nothing(self, check_use_case, mock_record_repo, mock_dispatcher, mock_uow, now):
        mock_record_repo.get_by_user_id = AsyncMock(return_value=premium_until(now + timedelta(days=2)))

        result = await check_use_case.execute("user_1")

        assert result.value.show_warning is False
        assert result.value.status == SubscriptionStatus.PREMIUM
        mock_dispatcher.notify_user.assert_not_called()
        mock_uow.commit.assert_not_awaited()

    async def test_expired_notifies_admins_once(self, check_use_case, mock_record_repo, mock_dispatcher, now):
        """
        Given: Trial ended yesterday
        When: User logs in twice
        Then: Error banner; admins notified once; user not notified
        """
        mock_record_repo.get_by_user_id = AsyncMock(
            return_value=premium_until(now - timedelta(days=1), status=SubscriptionStatus.TRIAL)
        )

        first = await check_use_case.execute("user_1")
        second = await check_use_case.execute("user_1")

        assert first.value.show_warning is True
        assert first.value.severity == NoticeSeverity.ERROR
        assert first.value.status == SubscriptionStatus.EXPIRED
        assert first.value.message == EXPIRED_MESSAGE
        assert second.value.severity == NoticeSeverity.ERROR
        mock_dispatcher.notify_admins.assert_called_once()
        assert "user_1" in mock_dispatcher.notify_admins.call_args.args[1]
        mock_dispatcher.notify_user.assert_not_called()

    async def test_free_user_sees_nothing(self, check_use_case, mock_dispatcher):
        result = await check_use_case.execute("user_1")

        assert result.is_ok()
        assert result.value.show_warning is False
        assert result.value.status == SubscriptionStatus.FREE
        mock_dispatcher.notify_user.assert_not_called()
        mock_dispatcher.notify_admins.assert_not_called()

    async def test_custom_thresholds(self, mock_uow, mock_record_repo, mock_dispatcher, now):
        mock_record_repo.get_by_user_id = AsyncMock(return_value=premium_until(now + timedelta(days=7)))
        use_case = CheckSubscriptionOnLogin(
            mock_uow, mock_record_repo, mock_dispatcher, warning_days=(7,), clock=lambda: now
        )

        result = await use_case.execute("user_1")

        assert result.value.show_warning is True
        assert result.value.message == "Your subscription expires in 7 days."

    async def test_repository_failure(self, check_use_case, mock_record_repo, mock_uow):
        mock_record_repo.get_by_user_id = AsyncMock(side_effect=Exception("db down"))

        result = await check_use_case.execute("user_1")

        assert result.error.code == "CHECK_ON_LOGIN_FAILED"
        mock_uow.rollback.assert_awaited_once()
