"""Unit tests for Voucher and PlanCatalog"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from pydantic import ValidationError
from src.domain.plan import PlanCatalog, PlanTerms, PlanType
from src.domain.voucher import Voucher, VoucherStatus, normalize_code


NOW = datetime(2024, 3, 15, 12, 0, 0)


def make_voucher(**overrides):
    data = {
        "code": "PROMO-1",
        "duration_months": 1,
        "amount": Decimal("5.00"),
        "plan_type": PlanType.MONTHLY,
        "max_uses": 1,
        "current_uses": 0,
        "status": VoucherStatus.ACTIVE,
    }
    data.update(overrides)
    return Voucher(**data)


class TestNormalizeCode:

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("promo-1", "PROMO-1"),
            ("  Premium-1234-5678 \n", "PREMIUM-1234-5678"),
            ("", ""),
            ("   ", ""),
            (None, ""),
        ],
    )
    def test_normalize_code(self, raw, expected):
        assert normalize_code(raw) == expected


class TestVoucherRules:

    def test_voucher_without_deadline_never_expires(self):
        assert make_voucher(expires_at=None).is_expired(NOW) is False

    def test_voucher_past_deadline_is_expired(self):
        assert make_voucher(expires_at=NOW - timedelta(minutes=1)).is_expired(NOW) is True

    def test_voucher_before_deadline_is_not_expired(self):
        assert make_voucher(expires_at=NOW + timedelta(days=1)).is_expired(NOW) is False

    def test_exhausted_when_uses_reach_max(self):
        assert make_voucher(max_uses=3, current_uses=3).is_exhausted() is True
        assert make_voucher(max_uses=3, current_uses=2).is_exhausted() is False


class TestPlanCatalog:

    def test_from_settings_builds_typed_terms(self):
        catalog = PlanCatalog.from_settings(
            {"monthly": 5, "quarterly": 13, "yearly": 45},
            {"monthly": 1, "quarterly": 3, "yearly": 6},
        )

        assert catalog.currency == "MAD"
        assert catalog.terms_for(PlanType.MONTHLY).price == Decimal("5")
        assert catalog.terms_for(PlanType.QUARTERLY).duration_months == 3
        assert catalog.terms_for(PlanType.YEARLY).duration_months == 6

    def test_catalog_requires_every_plan(self):
        with pytest.raises(ValidationError):
            PlanCatalog(plans={PlanType.MONTHLY: PlanTerms(price=Decimal("5"), duration_months=1)})

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            PlanTerms(price=Decimal("-1"), duration_months=1)

    def test_zero_duration_rejected(self):
        with pytest.raises(ValidationError):
            PlanTerms(price=Decimal("5"), duration_months=0)
