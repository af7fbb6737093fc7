from .unit_of_work import SqlAlchemyUnitOfWork
from .notification_service import (
    LoggingNotificationService,
    PushBackendNotificationService,
    CompositeNotificationService,
    create_notification_service,
)
from .access_cache import RedisAccessCache, NullAccessCache
from .payment_status_reader import SqlAlchemyPaymentStatusReader

__all__ = [
    "SqlAlchemyUnitOfWork",
    "LoggingNotificationService",
    "PushBackendNotificationService",
    "CompositeNotificationService",
    "create_notification_service",
    "RedisAccessCache",
    "NullAccessCache",
    "SqlAlchemyPaymentStatusReader",
]
