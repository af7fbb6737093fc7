from .account_repository import AccountRepository
from .subscription_record_repository import SubscriptionRecordRepository
from .voucher_repository import VoucherRepository, VoucherUsageRepository
from .payment_repository import PaymentRepository
from .device_registration_repository import DeviceRegistrationRepository

__all__ = [
    "AccountRepository",
    "SubscriptionRecordRepository",
    "VoucherRepository",
    "VoucherUsageRepository",
    "PaymentRepository",
    "DeviceRegistrationRepository",
]
