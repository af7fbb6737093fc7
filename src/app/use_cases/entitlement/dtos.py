"""Data Transfer Objects for Entitlement Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field
from src.domain.account import AccountRole
from src.domain.device_registration import DeviceRegistration
from src.domain.entitlement import current_state
from src.domain.payment import Payment, PaymentMethod, PaymentStatus
from src.domain.plan import PlanType
from src.domain.subscription_record import SubscriptionRecord, SubscriptionStatus
from src.domain.voucher import Voucher, VoucherStatus, VoucherUsage


class RequestContext(BaseModel):
    """
    Caller identity for one request

    Supplied by the identity provider and passed explicitly into every
    call; nothing about the current user is kept process-wide.
    """

    user_id: str = Field(
        ...,
        min_length=1,
        description="Authenticated account id"
    )

    role: AccountRole = Field(
        default=AccountRole.SPECTATOR,
        description="Account role issued by the identity provider"
    )

    @property
    def is_admin(self) -> bool:
        return self.role == AccountRole.ADMIN


# ---------------------------------------------------------------------------
# Subscription
# ---------------------------------------------------------------------------


class SubscriptionRecordDTO(BaseModel):
    """Subscription record with its effective status at read time"""

    user_id: str
    status: SubscriptionStatus = Field(..., description="Effective status (stale windows read as expired)")
    stored_status: SubscriptionStatus = Field(..., description="Status as persisted")
    plan_type: Optional[PlanType] = None
    end_date: Optional[datetime] = None
    days_remaining: Optional[int] = None
    last_payment_date: Optional[datetime] = None
    payment_amount: Optional[Decimal] = None
    total_spent: Decimal = Decimal("0")
    total_payments: int = 0

    @classmethod
    def from_record(cls, record: SubscriptionRecord, now: datetime) -> "SubscriptionRecordDTO":
        state = current_state(record, now)
        return cls(
            user_id=record.user_id,
            status=state.status,
            stored_status=record.status,
            plan_type=record.plan_type,
            end_date=record.end_date,
            days_remaining=state.days_remaining,
            last_payment_date=record.last_payment_date,
            payment_amount=record.payment_amount,
            total_spent=record.total_spent,
            total_payments=record.total_payments,
        )

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "user_abc123",
                "status": "premium",
                "stored_status": "premium",
                "plan_type": "monthly",
                "end_date": "2024-02-01T00:00:00",
                "days_remaining": 12,
                "last_payment_date": "2024-01-01T00:00:00",
                "payment_amount": "5.00",
                "total_spent": "5.00",
                "total_payments": 1
            }
        }


class AccessDecisionDTO(BaseModel):
    """
    Answer to "does this account currently have paid access"

    has_access is true iff the effective status is trial or premium.
    """

    user_id: str
    has_access: bool
    status: SubscriptionStatus
    days_remaining: Optional[int] = None
    cached: bool = Field(default=False, description="Served from the access cache")

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "user_abc123",
                "has_access": True,
                "status": "trial",
                "days_remaining": 5,
                "cached": False
            }
        }


class NoticeSeverity(str, Enum):
    WARNING = "warning"
    ERROR = "error"


class LoginCheckDTO(BaseModel):
    """Expiry banner to show after login"""

    user_id: str
    show_warning: bool
    message: Optional[str] = None
    severity: Optional[NoticeSeverity] = None
    status: SubscriptionStatus
    days_remaining: Optional[int] = None

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "user_abc123",
                "show_warning": True,
                "message": "Your subscription expires tomorrow! Renew now.",
                "severity": "warning",
                "status": "premium",
                "days_remaining": 1
            }
        }


class GrantPremiumCommandDTO(BaseModel):
    """Command DTO for an admin grant of premium months"""

    user_id: str = Field(..., min_length=1, description="Account receiving the grant")
    months: int = Field(..., gt=0, le=120, description="Months of premium to add")
    plan_type: Optional[PlanType] = Field(default=None, description="Plan recorded on the account")


# ---------------------------------------------------------------------------
# Vouchers
# ---------------------------------------------------------------------------


class RedeemVoucherCommandDTO(BaseModel):
    """
    Command DTO for redeeming a voucher

    The code is matched case-insensitively after trimming.
    """

    code: str = Field(..., description="Voucher code as typed by the user")
    user_id: str = Field(..., min_length=1, description="Redeeming account id")

    class Config:
        json_schema_extra = {
            "example": {
                "code": "premium-4821-9034",
                "user_id": "user_abc123"
            }
        }


class RedeemVoucherResponseDTO(BaseModel):
    success: bool = True
    code: str
    plan_type: PlanType
    duration_months: int
    end_date: datetime
    status: SubscriptionStatus = SubscriptionStatus.PREMIUM


class VoucherValidationDTO(BaseModel):
    """
    Preview of a redemption

    Never changes the voucher; valid=False carries the rejection code.
    """

    code: str
    valid: bool
    reason: Optional[str] = Field(default=None, description="Error code when the voucher is not redeemable")
    message: Optional[str] = None
    plan_type: Optional[PlanType] = None
    amount: Optional[Decimal] = None
    duration_months: Optional[int] = None


class CreateVoucherCommandDTO(BaseModel):
    """Command DTO for creating a voucher (admin)"""

    code: Optional[str] = Field(
        default=None,
        description="Explicit code; generated as PREMIUM-NNNN-NNNN when omitted"
    )

    duration_months: int = Field(..., gt=0, le=120, description="Months of premium granted")
    amount: Decimal = Field(default=Decimal("0"), ge=0, description="Nominal value")
    plan_type: PlanType = Field(..., description="Plan granted")
    max_uses: int = Field(default=1, gt=0, description="Maximum redemptions")
    expires_at: Optional[datetime] = Field(default=None, description="Redemption deadline")
    notes: Optional[str] = None
    created_by: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "duration_months": 3,
                "amount": "13.00",
                "plan_type": "quarterly",
                "max_uses": 50,
                "expires_at": "2024-12-31T23:59:59",
                "notes": "Back to school campaign"
            }
        }


class VoucherDTO(BaseModel):
    id: int
    code: str
    duration_months: int
    amount: Decimal
    plan_type: PlanType
    max_uses: int
    current_uses: int
    status: VoucherStatus
    expires_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_entity(cls, voucher: Voucher) -> "VoucherDTO":
        return cls(
            id=voucher.id,
            code=voucher.code,
            duration_months=voucher.duration_months,
            amount=voucher.amount,
            plan_type=voucher.plan_type,
            max_uses=voucher.max_uses,
            current_uses=voucher.current_uses,
            status=voucher.status,
            expires_at=voucher.expires_at,
            notes=voucher.notes,
            created_by=voucher.created_by,
            created_at=voucher.created_at,
        )


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------


class CreatePaymentCommandDTO(BaseModel):
    """Command DTO for starting a plan purchase"""

    user_id: str = Field(..., min_length=1, description="Paying account id")
    plan_type: PlanType = Field(..., description="Plan to purchase")
    payment_method: Optional[PaymentMethod] = Field(
        default=None,
        description="Gateway; defaults to the configured one"
    )


class PaymentDTO(BaseModel):
    id: str
    user_id: str
    amount: Decimal
    currency: str
    status: PaymentStatus
    plan_type: PlanType
    subscription_duration: int
    payment_method: PaymentMethod
    transaction_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, payment: Payment) -> "PaymentDTO":
        return cls(
            id=payment.id,
            user_id=payment.user_id,
            amount=payment.amount,
            currency=payment.currency,
            status=payment.status,
            plan_type=payment.plan_type,
            subscription_duration=payment.subscription_duration,
            payment_method=payment.payment_method,
            transaction_id=payment.transaction_id,
            created_at=payment.created_at,
            updated_at=payment.updated_at,
        )


class ConfirmPaymentCommandDTO(BaseModel):
    """
    Command DTO for a gateway confirmation

    Signature verification happens upstream, before this command is built.
    """

    payment_id: str = Field(..., min_length=1, description="Payment (order) id")
    transaction_id: Optional[str] = Field(default=None, description="Gateway transaction id")
    status: PaymentStatus = Field(..., description="Final status reported by the gateway")
    amount: Optional[Decimal] = Field(default=None, ge=0, description="Amount reported by the gateway")

    class Config:
        json_schema_extra = {
            "example": {
                "payment_id": "0b7c9f0e-1c9a-4b7e-9a43-2f3f4b1d2e10",
                "transaction_id": "CMI-778812",
                "status": "completed",
                "amount": "13.00"
            }
        }


class ConfirmPaymentResponseDTO(BaseModel):
    payment: PaymentDTO
    subscription: Optional[SubscriptionRecordDTO] = None
    already_processed: bool = Field(
        default=False,
        description="True when the payment was already in the reported final status"
    )


class PollOutcome(str, Enum):
    RESOLVED = "resolved"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


class PollPaymentCommandDTO(BaseModel):
    payment_id: str = Field(..., min_length=1)
    interval_seconds: float = Field(default=3.0, gt=0, description="Delay between reads")
    timeout_seconds: float = Field(default=60.0, gt=0, description="Give up after this long")


class PollResultDTO(BaseModel):
    """
    Outcome of polling a payment

    timeout is a normal outcome ("still processing"), not an error.
    """

    payment_id: str
    outcome: PollOutcome
    status: Optional[PaymentStatus] = None
    attempts: int = 0


# ---------------------------------------------------------------------------
# Devices and login
# ---------------------------------------------------------------------------


class RegisterDeviceCommandDTO(BaseModel):
    """Command DTO for claiming a device slot"""

    user_id: str = Field(..., min_length=1)
    device_id: str = Field(..., min_length=1, max_length=128, description="Client device fingerprint")
    role: AccountRole = Field(default=AccountRole.SPECTATOR)
    device_name: Optional[str] = None
    device_type: Optional[str] = None
    browser: Optional[str] = None
    os: Optional[str] = None


class DeviceRegistrationDTO(BaseModel):
    device_id: str
    device_name: Optional[str] = None
    device_type: Optional[str] = None
    browser: Optional[str] = None
    os: Optional[str] = None
    active: bool
    registered_at: datetime
    last_login_at: datetime

    @classmethod
    def from_entity(cls, registration: DeviceRegistration) -> "DeviceRegistrationDTO":
        return cls(
            device_id=registration.device_id,
            device_name=registration.device_name,
            device_type=registration.device_type,
            browser=registration.browser,
            os=registration.os,
            active=registration.active,
            registered_at=registration.registered_at,
            last_login_at=registration.last_login_at,
        )


class DeactivateDeviceResponseDTO(BaseModel):
    device_id: str
    deactivated: bool = Field(..., description="False when the device was unknown or already inactive")


class DeviceListDTO(BaseModel):
    user_id: str
    devices: List[DeviceRegistrationDTO]
    device_limit: int


class LoginCommandDTO(BaseModel):
    """Command DTO for the post-authentication login gate"""

    context: RequestContext
    device_id: str = Field(..., min_length=1, max_length=128)
    device_name: Optional[str] = None
    device_type: Optional[str] = None
    browser: Optional[str] = None
    os: Optional[str] = None


class LoginResultDTO(BaseModel):
    user_id: str
    device: DeviceRegistrationDTO
    subscription: LoginCheckDTO
    has_access: bool


class ExpirySweepResultDTO(BaseModel):
    """Result of one expiry sweep over trial/premium records"""

    records_checked: int
    expiring_soon: int
    expired: int
    failures: int
    sweep_time: datetime
    execution_time_ms: int


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


class PaymentHistoryDTO(BaseModel):
    """A page of a user's payments, newest first"""

    user_id: str
    payments: List[PaymentDTO]
    total: int
    limit: int
    offset: int


class VoucherUsageDTO(BaseModel):
    voucher_id: int
    user_id: str
    used_at: datetime
    code: Optional[str] = None
    plan_type: Optional[PlanType] = None
    duration_months: Optional[int] = None

    @classmethod
    def from_entity(cls, usage: VoucherUsage, voucher: Optional[Voucher] = None) -> "VoucherUsageDTO":
        return cls(
            voucher_id=usage.voucher_id,
            user_id=usage.user_id,
            used_at=usage.used_at,
            code=voucher.code if voucher else None,
            plan_type=voucher.plan_type if voucher else None,
            duration_months=voucher.duration_months if voucher else None,
        )


class VoucherStatsDTO(BaseModel):
    """Admin view of a voucher and who redeemed it"""

    voucher: VoucherDTO
    usages: List[VoucherUsageDTO]
    remaining_uses: int


class VoucherHistoryDTO(BaseModel):
    user_id: str
    usages: List[VoucherUsageDTO]
