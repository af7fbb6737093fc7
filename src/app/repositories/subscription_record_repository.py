"""Subscription Record Repository Interface

Defines the contract for subscription record persistence operations.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from src.domain.subscription_record import SubscriptionRecord


class SubscriptionRecordRepository(ABC):
    """
    Repository interface for SubscriptionRecord persistence

    The record row is the per-user serialization point: every writer
    (vouchers, payments, devices, admin actions) fetches it with
    for_update=True before mutating anything that belongs to the user.
    """

    @abstractmethod
    async def get_by_user_id(self, user_id: str, for_update: bool = False) -> Optional[SubscriptionRecord]:
        """
        Retrieve the record of a user

        Args:
            user_id: Account identifier
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            SubscriptionRecord if found, None otherwise
        """
        pass

    @abstractmethod
    async def create(self, record: SubscriptionRecord) -> SubscriptionRecord:
        """
        Create a new record

        Args:
            record: SubscriptionRecord to persist

        Returns:
            Created SubscriptionRecord with generated ID
        """
        pass

    @abstractmethod
    async def update(self, record: SubscriptionRecord) -> SubscriptionRecord:
        """Persist changes to an existing record"""
        pass

    @abstractmethod
    async def list_with_end_date(self) -> List[SubscriptionRecord]:
        """
        Retrieve trial and premium records that carry an end date

        Used by the expiry sweep to find users to warn.
        """
        pass
