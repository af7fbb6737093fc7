"""Payment Status Reader Interface

Lock-free status lookups used by the payment poller.
"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.payment import PaymentStatus


class PaymentStatusReader(ABC):
    """
    Reads the status of a payment in its own short session

    Each call opens and closes its own session so nothing is held open
    between two polls.
    """

    @abstractmethod
    async def get_status(self, payment_id: str) -> Optional[PaymentStatus]:
        """
        Current status of a payment

        Args:
            payment_id: Payment ID

        Returns:
            PaymentStatus, or None if the payment does not exist
        """
        pass
