"""Voucher Domain Entities

Promo codes granting a fixed plan, and the append-only usage trail.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import CheckConstraint, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from src.domain.base import BaseModel, Identifier
from src.domain.plan import PlanType


class VoucherStatus(str, Enum):
    """Voucher status types"""
    ACTIVE = "active"
    INACTIVE = "inactive"


def normalize_code(code: str) -> str:
    """Canonical form of a voucher code (trimmed, upper-case)"""
    return (code or "").strip().upper()


class Voucher(BaseModel, table=True):
    """
    Voucher - Redeemable promo code

    Domain Rules:
    - code is unique and stored normalized (trimmed, upper-case)
    - 0 <= current_uses <= max_uses, current_uses never decreases
    - Uses are claimed with a conditional UPDATE, never read-then-write
    - expires_at is optional (None = never expires)
    """

    __tablename__ = "vouchers"
    __table_args__ = (
        CheckConstraint('current_uses >= 0', name='current_uses_non_negative'),
        CheckConstraint('current_uses <= max_uses', name='current_uses_within_max'),
        CheckConstraint('max_uses > 0', name='max_uses_positive'),
        CheckConstraint('duration_months > 0', name='duration_months_positive'),
    )

    id: int = Field(
        sa_column=Column(Identifier, primary_key=True, autoincrement=True),
        description="Unique voucher identifier (auto-increment)"
    )

    code: str = Field(
        sa_column=Column(String(64), nullable=False, unique=True, index=True),
        description="Normalized promo code (unique)"
    )

    duration_months: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="Months of premium granted"
    )

    amount: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False, default=0),
        description="Nominal value of the voucher"
    )

    plan_type: PlanType = Field(
        description="Plan granted by the voucher"
    )

    max_uses: int = Field(
        default=1,
        sa_column=Column(Integer, nullable=False, default=1),
        description="Maximum number of redemptions"
    )

    current_uses: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0),
        description="Redemptions so far (monotonic)"
    )

    status: VoucherStatus = Field(
        default=VoucherStatus.ACTIVE,
        description="Voucher status (active, inactive)"
    )

    expires_at: Optional[datetime] = Field(
        default=None,
        description="Redemption deadline (None = no deadline)"
    )

    notes: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
        description="Admin notes"
    )

    created_by: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True),
        description="Admin who created the voucher"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Voucher creation timestamp"
    )

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at < now

    def is_exhausted(self) -> bool:
        return self.current_uses >= self.max_uses

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "code": "PREMIUM-4821-9034",
                "duration_months": 1,
                "amount": "5.00",
                "plan_type": "monthly",
                "max_uses": 10,
                "current_uses": 3,
                "status": "active",
                "expires_at": None,
                "created_at": "2024-01-01T00:00:00Z"
            }
        }


class VoucherUsage(BaseModel, table=True):
    """
    Voucher Usage - One row per successful redemption

    Domain Rules:
    - Append-only
    - (voucher_id, user_id) is unique: a user redeems a code at most once
    """

    __tablename__ = "voucher_usages"
    __table_args__ = (
        UniqueConstraint('voucher_id', 'user_id', name='uq_voucher_usage_voucher_user'),
        Index('ix_voucher_usages_user_id', 'user_id'),
    )

    id: int = Field(
        sa_column=Column(Identifier, primary_key=True, autoincrement=True),
        description="Unique usage identifier (auto-increment)"
    )

    voucher_id: int = Field(
        sa_column=Column(Identifier, ForeignKey("vouchers.id", ondelete="CASCADE"), nullable=False),
        description="Foreign key to Voucher"
    )

    user_id: str = Field(
        description="Redeeming account id"
    )

    used_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Redemption timestamp (immutable)"
    )
