"""Subscription Plans

Typed plan catalog. Each PlanType has exactly one PlanTerms entry holding
its price and the number of months it grants.
"""

from decimal import Decimal
from enum import Enum
from typing import Dict, Mapping
from pydantic import BaseModel, Field, model_validator


class PlanType(str, Enum):
    """Billing plans"""
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class PlanTerms(BaseModel):
    price: Decimal = Field(..., ge=0, description="Plan price in the billing currency")
    duration_months: int = Field(..., gt=0, description="Months of access granted")


class PlanCatalog(BaseModel):
    """
    Price and duration per plan

    Domain Rules:
    - Every PlanType has terms (no partial catalogs)
    - Prices are non-negative, durations strictly positive
    """

    currency: str = Field(default="MAD", min_length=3, max_length=3)
    plans: Dict[PlanType, PlanTerms]

    @model_validator(mode="after")
    def check_all_plans_present(self):
        missing = [plan.value for plan in PlanType if plan not in self.plans]
        if missing:
            raise ValueError(f"Plan catalog is missing terms for: {', '.join(missing)}")
        return self

    def terms_for(self, plan_type: PlanType) -> PlanTerms:
        return self.plans[plan_type]

    @classmethod
    def from_settings(
        cls,
        prices: Mapping[str, object],
        durations: Mapping[str, int],
        currency: str = "MAD",
    ) -> "PlanCatalog":
        plans = {
            plan: PlanTerms(
                price=Decimal(str(prices[plan.value])),
                duration_months=int(durations[plan.value]),
            )
            for plan in PlanType
        }
        return cls(currency=currency, plans=plans)
