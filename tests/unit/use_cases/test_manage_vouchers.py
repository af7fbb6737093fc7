"""Unit tests for voucher administration and validation"""

import random
import re
import pytest
from datetime import timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.exc import IntegrityError

from src.app.use_cases.entitlement.dtos import CreateVoucherCommandDTO
from src.app.use_cases.entitlement.manage_vouchers import (
    CreateVoucher,
    DeactivateVoucher,
    generate_voucher_code,
)
from src.app.use_cases.entitlement.validate_voucher import ValidateVoucher
from src.domain.plan import PlanType
from src.domain.voucher import Voucher, VoucherStatus


def make_voucher(**overrides):
    data = {
        "id": 1,
        "code": "PROMO-1",
        "duration_months": 3,
        "amount": Decimal("13.00"),
        "plan_type": PlanType.QUARTERLY,
        "max_uses": 5,
        "current_uses": 0,
        "status": VoucherStatus.ACTIVE,
    }
    data.update(overrides)
    return Voucher(**data)


@pytest.fixture
def mock_voucher_repo():
    repo = MagicMock()
    repo.get_by_code = AsyncMock(return_value=None)
    repo.get_by_id = AsyncMock(return_value=None)

    async def create(voucher):
        voucher.id = 42
        return voucher

    repo.create = AsyncMock(side_effect=create)
    repo.update = AsyncMock(side_effect=lambda v: v)
    return repo


def create_command(**overrides):
    data = {"duration_months": 3, "plan_type": PlanType.QUARTERLY, "amount": Decimal("13.00"), "max_uses": 50}
    data.update(overrides)
    return CreateVoucherCommandDTO(**data)


class TestGenerateVoucherCode:

    def test_format(self):
        assert re.fullmatch(r"PREMIUM-\d{4}-\d{4}", generate_voucher_code())

    def test_seeded_rng_is_deterministic(self):
        assert generate_voucher_code(random.Random(7)) == generate_voucher_code(random.Random(7))


@pytest.mark.asyncio
class TestCreateVoucher:

    async def test_explicit_code_is_normalized(self, mock_uow, mock_voucher_repo):
        result = await CreateVoucher(mock_uow, mock_voucher_repo).execute(create_command(code=" summer-24 "))

        assert result.is_ok()
        assert result.value.id == 42
        assert result.value.code == "SUMMER-24"
        assert result.value.current_uses == 0
        assert result.value.status == VoucherStatus.ACTIVE
        mock_uow.commit.assert_awaited_once()

    async def test_generated_code(self, mock_uow, mock_voucher_repo):
        result = await CreateVoucher(mock_uow, mock_voucher_repo).execute(create_command())

        assert result.is_ok()
        assert result.value.code.startswith("PREMIUM-")

    async def test_blank_code_rejected(self, mock_uow, mock_voucher_repo):
        result = await CreateVoucher(mock_uow, mock_voucher_repo).execute(create_command(code="  "))

        assert result.error.code == "VALIDATION_ERROR"
        mock_voucher_repo.create.assert_not_awaited()

    async def test_duplicate_code(self, mock_uow, mock_voucher_repo):
        mock_voucher_repo.get_by_code = AsyncMock(return_value=make_voucher(code="SUMMER-24"))

        result = await CreateVoucher(mock_uow, mock_voucher_repo).execute(create_command(code="summer-24"))

        assert result.error.code == "VOUCHER_CODE_TAKEN"
        mock_voucher_repo.create.assert_not_awaited()

    async def test_duplicate_detected_on_insert(self, mock_uow, mock_voucher_repo):
        mock_voucher_repo.create = AsyncMock(side_effect=IntegrityError("INSERT", {}, Exception("unique")))

        result = await CreateVoucher(mock_uow, mock_voucher_repo).execute(create_command(code="SUMMER-24"))

        assert result.error.code == "VOUCHER_CODE_TAKEN"
        mock_uow.rollback.assert_awaited_once()
        mock_uow.commit.assert_not_awaited()


@pytest.mark.asyncio
class TestDeactivateVoucher:

    async def test_deactivate(self, mock_uow, mock_voucher_repo):
        voucher = make_voucher()
        mock_voucher_repo.get_by_id = AsyncMock(return_value=voucher)

        result = await DeactivateVoucher(mock_uow, mock_voucher_repo).execute(1)

        assert result.value.status == VoucherStatus.INACTIVE
        mock_uow.commit.assert_awaited_once()

    async def test_deactivate_is_idempotent(self, mock_uow, mock_voucher_repo):
        mock_voucher_repo.get_by_id = AsyncMock(return_value=make_voucher(status=VoucherStatus.INACTIVE))

        result = await DeactivateVoucher(mock_uow, mock_voucher_repo).execute(1)

        assert result.is_ok()
        mock_voucher_repo.update.assert_not_awaited()
        mock_uow.commit.assert_not_awaited()

    async def test_unknown_voucher(self, mock_uow, mock_voucher_repo):
        result = await DeactivateVoucher(mock_uow, mock_voucher_repo).execute(99)

        assert result.error.code == "VOUCHER_NOT_FOUND"


@pytest.mark.asyncio
class TestValidateVoucher:

    async def test_redeemable_voucher(self, mock_voucher_repo, clock):
        mock_voucher_repo.get_by_code = AsyncMock(return_value=make_voucher())

        result = await ValidateVoucher(mock_voucher_repo, clock=clock).execute("promo-1")

        assert result.is_ok()
        assert result.value.valid is True
        assert result.value.code == "PROMO-1"
        assert result.value.plan_type == PlanType.QUARTERLY
        assert result.value.duration_months == 3
        mock_voucher_repo.get_by_code.assert_awaited_once_with("PROMO-1")

    @pytest.mark.parametrize(
        "voucher_overrides, reason",
        [
            ({"status": VoucherStatus.INACTIVE}, "VOUCHER_INACTIVE"),
            ({"max_uses": 2, "current_uses": 2}, "VOUCHER_EXHAUSTED"),
        ],
    )
    async def test_unredeemable_voucher(self, mock_voucher_repo, clock, voucher_overrides, reason):
        mock_voucher_repo.get_by_code = AsyncMock(return_value=make_voucher(**voucher_overrides))

        result = await ValidateVoucher(mock_voucher_repo, clock=clock).execute("PROMO-1")

        assert result.is_ok()
        assert result.value.valid is False
        assert result.value.reason == reason

    async def test_expired_voucher(self, mock_voucher_repo, clock, now):
        mock_voucher_repo.get_by_code = AsyncMock(return_value=make_voucher(expires_at=now - timedelta(days=1)))

        result = await ValidateVoucher(mock_voucher_repo, clock=clock).execute("PROMO-1")

        assert result.value.reason == "VOUCHER_EXPIRED"

    async def test_unknown_voucher(self, mock_voucher_repo, clock):
        result = await ValidateVoucher(mock_voucher_repo, clock=clock).execute("NOPE")

        assert result.value.valid is False
        assert result.value.reason == "VOUCHER_NOT_FOUND"

    async def test_blank_code(self, mock_voucher_repo, clock):
        result = await ValidateVoucher(mock_voucher_repo, clock=clock).execute("")

        assert result.is_err()
        assert result.error.code == "VALIDATION_ERROR"
