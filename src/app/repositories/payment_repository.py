"""Payment Repository Interface

Defines the contract for payment persistence operations.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple
from src.domain.payment import Payment, PaymentStatus


class PaymentRepository(ABC):
    """
    Repository interface for Payment persistence

    Status changes go through transition_status(), a compare-and-swap on
    the pending status, so webhook and poll paths cannot both win.
    """

    @abstractmethod
    async def get_by_id(self, payment_id: str) -> Optional[Payment]:
        """
        Retrieve payment by ID

        Args:
            payment_id: Payment ID

        Returns:
            Payment if found, None otherwise
        """
        pass

    @abstractmethod
    async def create(self, payment: Payment) -> Payment:
        pass

    @abstractmethod
    async def transition_status(
        self,
        payment_id: str,
        new_status: PaymentStatus,
        transaction_id: Optional[str],
    ) -> bool:
        """
        Move a pending payment to a final status

        Args:
            payment_id: Payment ID
            new_status: completed or failed
            transaction_id: Gateway transaction id

        Returns:
            True if this call performed the transition, False if the payment
            was no longer pending
        """
        pass

    @abstractmethod
    async def list_by_user(self, user_id: str, limit: int = 20, offset: int = 0) -> Tuple[List[Payment], int]:
        """
        Retrieve a page of a user's payments, newest first

        Returns:
            (payments on the page, total payments of the user)
        """
        pass
