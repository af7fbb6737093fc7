"""Subscription Record Domain Entity

One row per account holding its billing state. Rows are never deleted;
readers reinterpret stale trial/premium rows as expired.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import CheckConstraint, Integer, Numeric, String
from src.domain.base import BaseModel, Identifier
from src.domain.plan import PlanType


class SubscriptionStatus(str, Enum):
    """Stored subscription status"""
    FREE = "free"
    TRIAL = "trial"
    PREMIUM = "premium"
    EXPIRED = "expired"


class SubscriptionRecord(BaseModel, table=True):
    """
    Subscription Record - Billing state of one account

    Domain Rules:
    - Exactly one record per user (user_id is unique)
    - status = premium implies end_date is set
    - trial/premium with end_date <= now reads as expired (lazy expiry)
    - total_spent and total_payments only grow
    - Writers lock the row (SELECT FOR UPDATE) before mutating it
    """

    __tablename__ = "subscription_records"
    __table_args__ = (
        CheckConstraint('total_spent >= 0', name='total_spent_non_negative'),
        CheckConstraint('total_payments >= 0', name='total_payments_non_negative'),
        Index('ix_subscription_records_status', 'status'),
    )

    id: int = Field(
        sa_column=Column(Identifier, primary_key=True, autoincrement=True),
        description="Unique record identifier (auto-increment)"
    )

    user_id: str = Field(
        index=True,
        unique=True,
        description="Account id (unique - one record per account)"
    )

    status: SubscriptionStatus = Field(
        default=SubscriptionStatus.FREE,
        description="Stored status (free, trial, premium, expired)"
    )

    plan_type: Optional[PlanType] = Field(
        default=None,
        description="Plan of the current paid window"
    )

    end_date: Optional[datetime] = Field(
        default=None,
        description="End of the current trial/paid window (UTC)"
    )

    last_payment_date: Optional[datetime] = Field(
        default=None,
        description="Timestamp of the last completed payment"
    )

    payment_amount: Optional[Decimal] = Field(
        default=None,
        sa_column=Column(Numeric(18, 2), nullable=True),
        description="Amount of the last completed payment"
    )

    total_spent: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(18, 2), nullable=False, default=0),
        description="Sum of completed payments (monotonic)"
    )

    total_payments: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0),
        description="Number of completed payments (monotonic)"
    )

    last_notice_key: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True),
        description="Dedup key of the last expiry notice sent"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Record creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "user_id": "user_abc123",
                "status": "premium",
                "plan_type": "monthly",
                "end_date": "2024-02-01T00:00:00Z",
                "last_payment_date": "2024-01-01T00:00:00Z",
                "payment_amount": "5.00",
                "total_spent": "18.00",
                "total_payments": 2,
                "created_at": "2023-12-01T00:00:00Z",
                "updated_at": "2024-01-01T00:00:00Z"
            }
        }
