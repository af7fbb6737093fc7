from .account_repository import SqlAlchemyAccountRepository
from .subscription_record_repository import SqlAlchemySubscriptionRecordRepository
from .voucher_repository import SqlAlchemyVoucherRepository, SqlAlchemyVoucherUsageRepository
from .payment_repository import SqlAlchemyPaymentRepository
from .device_registration_repository import SqlAlchemyDeviceRegistrationRepository

__all__ = [
    "SqlAlchemyAccountRepository",
    "SqlAlchemySubscriptionRecordRepository",
    "SqlAlchemyVoucherRepository",
    "SqlAlchemyVoucherUsageRepository",
    "SqlAlchemyPaymentRepository",
    "SqlAlchemyDeviceRegistrationRepository",
]
