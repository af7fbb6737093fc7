"""Request schemas for the Entitlement API

Pydantic models for validating incoming HTTP requests. The caller's
identity comes from headers, never from the body.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, field_validator
from src.domain.payment import PaymentMethod, PaymentStatus
from src.domain.plan import PlanType


class VoucherCodeRequestSchema(BaseModel):
    """
    Request schema carrying a voucher code

    Used for POST /vouchers/redeem and POST /vouchers/validate.
    """

    code: str = Field(
        ...,
        max_length=64,
        description="Voucher code (case-insensitive)"
    )

    class Config:
        json_schema_extra = {
            "example": {"code": "PREMIUM-4821-9034"}
        }


class CreateVoucherRequestSchema(BaseModel):
    """
    Request schema for creating a voucher

    Used for POST /vouchers (admin).
    """

    code: Optional[str] = Field(default=None, max_length=64, description="Explicit code, generated if omitted")
    duration_months: int = Field(..., gt=0, le=120, description="Months of premium granted")
    amount: Decimal = Field(default=Decimal("0"), ge=0, description="Nominal value")
    plan_type: PlanType = Field(..., description="Plan granted")
    max_uses: int = Field(default=1, gt=0, description="Maximum redemptions")
    expires_at: Optional[datetime] = Field(default=None, description="Redemption deadline (UTC)")
    notes: Optional[str] = Field(default=None, max_length=500)

    class Config:
        json_schema_extra = {
            "example": {
                "duration_months": 1,
                "amount": "5.00",
                "plan_type": "monthly",
                "max_uses": 10
            }
        }


class CreatePaymentRequestSchema(BaseModel):
    """
    Request schema for starting a payment

    Used for POST /payments. The amount is taken from the plan catalog.
    """

    plan_type: PlanType = Field(..., description="Plan to purchase")
    payment_method: Optional[PaymentMethod] = Field(default=None, description="Gateway override")


class ConfirmPaymentRequestSchema(BaseModel):
    """
    Request schema for a gateway confirmation

    Used for POST /payments/{payment_id}/confirm after signature
    verification.
    """

    transaction_id: Optional[str] = Field(default=None, max_length=255, description="Gateway transaction id")
    status: PaymentStatus = Field(..., description="completed or failed")
    amount: Optional[Decimal] = Field(default=None, ge=0, description="Amount reported by the gateway")

    @field_validator("status")
    @classmethod
    def validate_final_status(cls, v):
        """Gateways only report final verdicts"""
        if v == PaymentStatus.PENDING:
            raise ValueError("status must be completed or failed")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "transaction_id": "CMI-778812",
                "status": "completed",
                "amount": "13.00"
            }
        }


class DeviceRequestSchema(BaseModel):
    """
    Request schema describing the client device

    Used for POST /sessions/login and POST /devices/register.
    """

    device_id: str = Field(..., min_length=1, max_length=128, description="Client device fingerprint")
    device_name: Optional[str] = Field(default=None, max_length=255)
    device_type: Optional[str] = Field(default=None, max_length=32, description="desktop, mobile or tablet")
    browser: Optional[str] = Field(default=None, max_length=64)
    os: Optional[str] = Field(default=None, max_length=64)

    class Config:
        json_schema_extra = {
            "example": {
                "device_id": "fp_3b1f0c9a",
                "device_name": "Chrome on Windows",
                "device_type": "desktop",
                "browser": "Chrome",
                "os": "Windows"
            }
        }


class GrantPremiumRequestSchema(BaseModel):
    """
    Request schema for an admin premium grant

    Used for POST /admin/subscriptions/{user_id}/grant.
    """

    months: int = Field(..., gt=0, le=120, description="Months to add")
    plan_type: Optional[PlanType] = Field(default=None)
