"""Unit tests for RedeemVoucher use case

Tests cover:
- Successful redemption (new and existing records, stacking)
- Rejections: not found, inactive, expired, exhausted, already redeemed
- Losing the conditional claim and unique-violation races
- Exclusivity under concurrent redemptions
"""

import asyncio
import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.exc import IntegrityError

from libs.result import ErrorCategory
from src.app.use_cases.entitlement.dtos import RedeemVoucherCommandDTO
from src.app.use_cases.entitlement.redeem_voucher import RedeemVoucher
from src.domain.plan import PlanType
from src.domain.subscription_record import SubscriptionRecord, SubscriptionStatus
from src.domain.voucher import Voucher, VoucherStatus, VoucherUsage


def make_voucher(**overrides):
    data = {
        "id": 1,
        "code": "PROMO-1",
        "duration_months": 1,
        "amount": Decimal("5.00"),
        "plan_type": PlanType.MONTHLY,
        "max_uses": 1,
        "current_uses": 0,
        "status": VoucherStatus.ACTIVE,
        "expires_at": None,
    }
    data.update(overrides)
    return Voucher(**data)


@pytest.fixture
def mock_voucher_repo():
    """Mock voucher repository"""
    repo = MagicMock()
    repo.get_by_code = AsyncMock(return_value=make_voucher())
    repo.claim_use = AsyncMock(return_value=True)
    return repo


@pytest.fixture
def mock_usage_repo():
    """Mock voucher usage repository"""
    repo = MagicMock()
    repo.get_by_voucher_and_user = AsyncMock(return_value=None)
    repo.create = AsyncMock(side_effect=lambda usage: usage)
    return repo


@pytest.fixture
def mock_record_repo():
    """Mock subscription record repository"""
    repo = MagicMock()
    repo.get_by_user_id = AsyncMock(return_value=None)
    repo.create = AsyncMock(side_effect=lambda record: record)
    repo.update = AsyncMock(side_effect=lambda record: record)
    return repo


@pytest.fixture
def redeem_use_case(mock_uow, mock_voucher_repo, mock_usage_repo, mock_record_repo, mock_access_cache, clock):
    """RedeemVoucher use case instance with mocked dependencies"""
    return RedeemVoucher(
        uow=mock_uow,
        voucher_repo=mock_voucher_repo,
        usage_repo=mock_usage_repo,
        record_repo=mock_record_repo,
        access_cache=mock_access_cache,
        clock=clock,
    )


@pytest.mark.asyncio
class TestRedeemVoucherSuccess:
    """Test successful redemption"""

    async def test_redeem_for_free_user_creates_premium_record(
        self, redeem_use_case, mock_voucher_repo, mock_usage_repo, mock_record_repo, mock_uow, mock_access_cache
    ):
        """
        Given: Voucher PROMO-1 (monthly, 1 month, max_uses=1), user without record
        When: redeem("promo-1") is called
        Then: User becomes premium monthly until now + 1 month
        """
        # Act
        result = await redeem_use_case.execute(RedeemVoucherCommandDTO(code="  promo-1 ", user_id="user_1"))

        # Assert
        assert result.is_ok()
        response = result.value
        assert response.code == "PROMO-1"
        assert response.plan_type == PlanType.MONTHLY
        assert response.end_date == datetime(2024, 4, 15, 12, 0, 0)

        mock_voucher_repo.get_by_code.assert_awaited_once_with("PROMO-1")
        mock_record_repo.get_by_user_id.assert_awaited_once_with("user_1", for_update=True)
        mock_voucher_repo.claim_use.assert_awaited_once_with(1)

        usage = mock_usage_repo.create.await_args.args[0]
        assert isinstance(usage, VoucherUsage)
        assert usage.voucher_id == 1
        assert usage.user_id == "user_1"

        created = mock_record_repo.create.await_args.args[0]
        assert created.status == SubscriptionStatus.PREMIUM
        assert created.plan_type == PlanType.MONTHLY
        assert created.end_date == datetime(2024, 4, 15, 12, 0, 0)

        mock_uow.commit.assert_awaited_once()
        mock_access_cache.invalidate.assert_awaited_once_with("user_1")

    async def test_redeem_stacks_on_active_premium(
        self, redeem_use_case, mock_record_repo, mock_voucher_repo, now
    ):
        """
        Given: User is premium for 10 more days
        When: A 3-month voucher is redeemed
        Then: The 3 months are added to the current end date
        """
        # Arrange
        record = SubscriptionRecord(
            user_id="user_1",
            status=SubscriptionStatus.PREMIUM,
            plan_type=PlanType.MONTHLY,
            end_date=now + timedelta(days=10),
            last_notice_key="warn3:x",
        )
        mock_record_repo.get_by_user_id = AsyncMock(return_value=record)
        mock_voucher_repo.get_by_code = AsyncMock(
            return_value=make_voucher(duration_months=3, plan_type=PlanType.QUARTERLY)
        )

        # Act
        result = await redeem_use_case.execute(RedeemVoucherCommandDTO(code="PROMO-1", user_id="user_1"))

        # Assert
        assert result.is_ok()
        assert record.end_date == datetime(2024, 6, 25, 12, 0, 0)
        assert record.plan_type == PlanType.QUARTERLY
        assert record.last_notice_key is None
        mock_record_repo.update.assert_awaited_once_with(record)
        mock_record_repo.create.assert_not_awaited()

    async def test_redeem_different_voucher_while_premium_is_allowed(
        self, redeem_use_case, mock_record_repo, mock_usage_repo, now
    ):
        """Active premium does not block redeeming another code"""
        mock_record_repo.get_by_user_id = AsyncMock(
            return_value=SubscriptionRecord(
                user_id="user_1", status=SubscriptionStatus.PREMIUM, end_date=now + timedelta(days=30)
            )
        )

        result = await redeem_use_case.execute(RedeemVoucherCommandDTO(code="OTHER-CODE", user_id="user_1"))

        assert result.is_ok()
        mock_usage_repo.create.assert_awaited_once()


@pytest.mark.asyncio
class TestRedeemVoucherRejections:
    """Test business rule rejections"""

    async def test_blank_code_is_validation_error(self, redeem_use_case, mock_voucher_repo):
        result = await redeem_use_case.execute(RedeemVoucherCommandDTO(code="   ", user_id="user_1"))

        assert result.is_err()
        assert result.error.code == "VALIDATION_ERROR"
        assert result.error.category == ErrorCategory.VALIDATION
        mock_voucher_repo.get_by_code.assert_not_awaited()

    async def test_unknown_code(self, redeem_use_case, mock_voucher_repo, mock_uow):
        mock_voucher_repo.get_by_code = AsyncMock(return_value=None)

        result = await redeem_use_case.execute(RedeemVoucherCommandDTO(code="NOPE", user_id="user_1"))

        assert result.is_err()
        assert result.error.code == "VOUCHER_NOT_FOUND"
        mock_uow.commit.assert_not_awaited()

    async def test_inactive_voucher(self, redeem_use_case, mock_voucher_repo):
        mock_voucher_repo.get_by_code = AsyncMock(return_value=make_voucher(status=VoucherStatus.INACTIVE))

        result = await redeem_use_case.execute(RedeemVoucherCommandDTO(code="PROMO-1", user_id="user_1"))

        assert result.error.code == "VOUCHER_INACTIVE"
        mock_voucher_repo.claim_use.assert_not_awaited()

    async def test_expired_voucher(self, redeem_use_case, mock_voucher_repo, now):
        mock_voucher_repo.get_by_code = AsyncMock(
            return_value=make_voucher(expires_at=now - timedelta(hours=1))
        )

        result = await redeem_use_case.execute(RedeemVoucherCommandDTO(code="PROMO-1", user_id="user_1"))

        assert result.error.code == "VOUCHER_EXPIRED"
        mock_voucher_repo.claim_use.assert_not_awaited()

    async def test_exhausted_voucher(self, redeem_use_case, mock_voucher_repo):
        mock_voucher_repo.get_by_code = AsyncMock(return_value=make_voucher(max_uses=2, current_uses=2))

        result = await redeem_use_case.execute(RedeemVoucherCommandDTO(code="PROMO-1", user_id="user_1"))

        assert result.error.code == "VOUCHER_EXHAUSTED"
        mock_voucher_repo.claim_use.assert_not_awaited()

    async def test_same_user_same_code_is_already_redeemed(
        self, redeem_use_case, mock_voucher_repo, mock_usage_repo
    ):
        """
        Given: User already redeemed PROMO-1, which still has uses left
        When: The user redeems PROMO-1 again
        Then: VOUCHER_ALREADY_REDEEMED, no use claimed
        """
        mock_voucher_repo.get_by_code = AsyncMock(return_value=make_voucher(max_uses=10, current_uses=1))
        mock_usage_repo.get_by_voucher_and_user = AsyncMock(
            return_value=VoucherUsage(voucher_id=1, user_id="user_1")
        )

        result = await redeem_use_case.execute(RedeemVoucherCommandDTO(code="PROMO-1", user_id="user_1"))

        assert result.error.code == "VOUCHER_ALREADY_REDEEMED"
        mock_voucher_repo.claim_use.assert_not_awaited()


@pytest.mark.asyncio
class TestRedeemVoucherRaces:
    """Test outcomes decided at write time"""

    async def test_losing_conditional_claim_is_exhausted(
        self, redeem_use_case, mock_voucher_repo, mock_usage_repo, mock_uow
    ):
        mock_voucher_repo.claim_use = AsyncMock(return_value=False)

        result = await redeem_use_case.execute(RedeemVoucherCommandDTO(code="PROMO-1", user_id="user_1"))

        assert result.error.code == "VOUCHER_EXHAUSTED"
        mock_uow.rollback.assert_awaited_once()
        mock_uow.commit.assert_not_awaited()
        mock_usage_repo.create.assert_not_awaited()

    async def test_unique_violation_on_usage_is_already_redeemed(
        self, redeem_use_case, mock_usage_repo, mock_record_repo, mock_uow
    ):
        mock_usage_repo.create = AsyncMock(
            side_effect=IntegrityError("INSERT INTO voucher_usages", {}, Exception("UNIQUE constraint failed"))
        )

        result = await redeem_use_case.execute(RedeemVoucherCommandDTO(code="PROMO-1", user_id="user_1"))

        assert result.error.code == "VOUCHER_ALREADY_REDEEMED"
        mock_uow.rollback.assert_awaited_once()
        mock_uow.commit.assert_not_awaited()
        mock_record_repo.create.assert_not_awaited()

    async def test_infrastructure_failure_rolls_back(self, redeem_use_case, mock_record_repo, mock_uow):
        mock_record_repo.get_by_user_id = AsyncMock(side_effect=Exception("connection reset"))

        result = await redeem_use_case.execute(RedeemVoucherCommandDTO(code="PROMO-1", user_id="user_1"))

        assert result.error.code == "REDEEM_VOUCHER_FAILED"
        assert result.error.category == ErrorCategory.INFRASTRUCTURE
        assert "connection reset" in result.error.reason
        mock_uow.rollback.assert_awaited_once()


class InMemoryVoucherStore:
    """Shared state standing in for the vouchers/voucher_usages tables"""

    def __init__(self, voucher: Voucher):
        self.voucher = voucher
        self.usages = set()


class InMemoryVoucherRepository:
    def __init__(self, store: InMemoryVoucherStore):
        self.store = store

    async def get_by_code(self, code):
        await asyncio.sleep(0)
        v = self.store.voucher
        if v.code != code:
            return None
        return make_voucher(
            id=v.id,
            code=v.code,
            max_uses=v.max_uses,
            current_uses=v.current_uses,
            status=v.status,
        )

    async def claim_use(self, voucher_id):
        await asyncio.sleep(0)
        v = self.store.voucher
        # Check and increment happen without yielding, like a conditional UPDATE
        if v.id == voucher_id and v.status == VoucherStatus.ACTIVE and v.current_uses < v.max_uses:
            v.current_uses += 1
            return True
        return False


class InMemoryUsageRepository:
    def __init__(self, store: InMemoryVoucherStore):
        self.store = store

    async def get_by_voucher_and_user(self, voucher_id, user_id):
        await asyncio.sleep(0)
        if (voucher_id, user_id) in self.store.usages:
            return VoucherUsage(voucher_id=voucher_id, user_id=user_id)
        return None

    async def create(self, usage):
        key = (usage.voucher_id, usage.user_id)
        if key in self.store.usages:
            raise IntegrityError("INSERT INTO voucher_usages", {}, Exception("UNIQUE constraint failed"))
        self.store.usages.add(key)
        return usage


def build_use_case(store, clock):
    uow = MagicMock()
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    record_repo = MagicMock()
    record_repo.get_by_user_id = AsyncMock(return_value=None)
    record_repo.create = AsyncMock(side_effect=lambda record: record)
    return RedeemVoucher(
        uow=uow,
        voucher_repo=InMemoryVoucherRepository(store),
        usage_repo=InMemoryUsageRepository(store),
        record_repo=record_repo,
        clock=clock,
    )


@pytest.mark.asyncio
class TestRedeemVoucherExclusivity:
    """Test at most max_uses concurrent redemptions succeed"""

    @pytest.mark.parametrize("max_uses", [1, 3, 5])
    async def test_two_n_concurrent_redeems_yield_n_successes(self, max_uses, clock):
        """
        Given: Voucher with max_uses = N
        When: 2N distinct users redeem it concurrently
        Then: Exactly N succeed, N get VOUCHER_EXHAUSTED, current_uses == N
        """
        # Arrange
        store = InMemoryVoucherStore(make_voucher(max_uses=max_uses))
        users = [f"user_{i}" for i in range(2 * max_uses)]

        # Act
        results = await asyncio.gather(
            *[
                build_use_case(store, clock).execute(RedeemVoucherCommandDTO(code="promo-1", user_id=user))
                for user in users
            ]
        )

        # Assert
        successes = [r for r in results if r.is_ok()]
        failures = [r for r in results if r.is_err()]
        assert len(successes) == max_uses
        assert len(failures) == max_uses
        assert all(r.error.code == "VOUCHER_EXHAUSTED" for r in failures)
        assert store.voucher.current_uses == max_uses
        assert len(store.usages) == max_uses

    async def test_scenario_redeem_then_redeem_again(self, clock):
        """
        Given: PROMO-1 {max_uses: 1, monthly, 1 month}, free user U
        When: U redeems "promo-1", then "PROMO-1" again
        Then: First succeeds, second is VOUCHER_ALREADY_REDEEMED
        """
        store = InMemoryVoucherStore(make_voucher())

        first = await build_use_case(store, clock).execute(RedeemVoucherCommandDTO(code="promo-1", user_id="U"))
        second = await build_use_case(store, clock).execute(RedeemVoucherCommandDTO(code="PROMO-1", user_id="U"))

        assert first.is_ok()
        assert first.value.plan_type == PlanType.MONTHLY
        assert second.is_err()
        assert second.error.code == "VOUCHER_ALREADY_REDEEMED"
        assert store.voucher.current_uses == 1
