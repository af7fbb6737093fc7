from .unit_of_work import UnitOfWork
from .notification_service import NotificationService
from .notification_dispatcher import NotificationDispatcher
from .access_cache import AccessCache
from .payment_status_reader import PaymentStatusReader

__all__ = [
    "UnitOfWork",
    "NotificationService",
    "NotificationDispatcher",
    "AccessCache",
    "PaymentStatusReader",
]
