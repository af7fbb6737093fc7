from .base import BaseModel, generate_uuid
from .plan import PlanType, PlanTerms, PlanCatalog
from .account import Account, AccountRole
from .subscription_record import SubscriptionRecord, SubscriptionStatus
from .voucher import Voucher, VoucherStatus, VoucherUsage, normalize_code
from .payment import Payment, PaymentStatus, PaymentMethod, FINAL_PAYMENT_STATUSES
from .device_registration import DeviceRegistration
from .entitlement import SubscriptionState, current_state, add_months, extended_end_date

__all__ = [
    "BaseModel",
    "generate_uuid",
    "PlanType",
    "PlanTerms",
    "PlanCatalog",
    "Account",
    "AccountRole",
    "SubscriptionRecord",
    "SubscriptionStatus",
    "Voucher",
    "VoucherStatus",
    "VoucherUsage",
    "normalize_code",
    "Payment",
    "PaymentStatus",
    "PaymentMethod",
    "FINAL_PAYMENT_STATUSES",
    "DeviceRegistration",
    "SubscriptionState",
    "current_state",
    "add_months",
    "extended_end_date",
]
