"""Payment Domain Entity

Gateway payments awaiting or carrying a final status.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import Integer, Numeric, String
from src.domain.base import BaseModel, generate_uuid
from src.domain.plan import PlanType


class PaymentStatus(str, Enum):
    """Payment status types"""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentMethod(str, Enum):
    """Payment gateways"""
    SIMULATION = "simulation"
    CMI = "cmi"
    TIJARI = "tijari"


FINAL_PAYMENT_STATUSES = (PaymentStatus.COMPLETED, PaymentStatus.FAILED)


class Payment(BaseModel, table=True):
    """
    Payment - A single purchase of a plan

    Domain Rules:
    - Created pending, moves exactly once to completed or failed
    - The move is a conditional UPDATE guarded by status = 'pending'
    - Only status, transaction_id and updated_at ever change
    - A completed payment grants entitlement exactly once
    """

    __tablename__ = "payments"
    __table_args__ = (
        Index('ix_payments_user_id', 'user_id'),
        Index('ix_payments_status', 'status'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        sa_column=Column(String(36), primary_key=True),
        description="Payment id (UUID, also the gateway order id)"
    )

    user_id: str = Field(
        description="Paying account id"
    )

    amount: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Amount charged"
    )

    currency: str = Field(
        default="MAD",
        sa_column=Column(String(3), nullable=False, default="MAD"),
        description="Currency code (ISO 4217)"
    )

    status: PaymentStatus = Field(
        default=PaymentStatus.PENDING,
        description="Payment status (pending, completed, failed)"
    )

    plan_type: PlanType = Field(
        description="Plan purchased"
    )

    subscription_duration: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="Months of access purchased"
    )

    payment_method: PaymentMethod = Field(
        default=PaymentMethod.SIMULATION,
        description="Gateway used"
    )

    transaction_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Gateway transaction id (set on confirmation)"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Payment creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last status change timestamp"
    )

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": "0b7c9f0e-1c9a-4b7e-9a43-2f3f4b1d2e10",
                "user_id": "user_abc123",
                "amount": "13.00",
                "currency": "MAD",
                "status": "pending",
                "plan_type": "quarterly",
                "subscription_duration": 3,
                "payment_method": "cmi",
                "transaction_id": None,
                "created_at": "2024-01-01T00:00:00Z",
                "updated_at": "2024-01-01T00:00:00Z"
            }
        }
