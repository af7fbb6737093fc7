"""Voucher Repository Interfaces

Defines the contracts for voucher and voucher usage persistence.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from src.domain.voucher import Voucher, VoucherUsage


class VoucherRepository(ABC):
    """
    Repository interface for Voucher persistence

    Use counters are only ever changed through claim_use(), which must be
    a single atomic conditional update.
    """

    @abstractmethod
    async def get_by_code(self, code: str) -> Optional[Voucher]:
        """
        Retrieve voucher by normalized code

        Args:
            code: Normalized voucher code (trimmed, upper-case)

        Returns:
            Voucher if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_id(self, voucher_id: int) -> Optional[Voucher]:
        pass

    @abstractmethod
    async def list_all(self) -> List[Voucher]:
        """Retrieve all vouchers, newest first"""
        pass

    @abstractmethod
    async def create(self, voucher: Voucher) -> Voucher:
        pass

    @abstractmethod
    async def update(self, voucher: Voucher) -> Voucher:
        pass

    @abstractmethod
    async def claim_use(self, voucher_id: int) -> bool:
        """
        Atomically take one use of an active voucher

        Equivalent to
        UPDATE vouchers SET current_uses = current_uses + 1
        WHERE id = :id AND current_uses < max_uses AND status = 'active'

        Args:
            voucher_id: Voucher ID

        Returns:
            True if this caller got the use, False if none was left
        """
        pass


class VoucherUsageRepository(ABC):
    """Repository interface for the append-only VoucherUsage trail"""

    @abstractmethod
    async def get_by_voucher_and_user(self, voucher_id: int, user_id: str) -> Optional[VoucherUsage]:
        """
        Retrieve the usage row of a user for a voucher

        Args:
            voucher_id: Voucher ID
            user_id: Account identifier

        Returns:
            VoucherUsage if the user already redeemed the voucher, None otherwise
        """
        pass

    @abstractmethod
    async def create(self, usage: VoucherUsage) -> VoucherUsage:
        """
        Append a usage row

        Raises:
            IntegrityError: If the user already redeemed this voucher
        """
        pass

    @abstractmethod
    async def list_by_voucher(self, voucher_id: int) -> List[VoucherUsage]:
        """Usages of a voucher, newest first"""
        pass

    @abstractmethod
    async def list_by_user(self, user_id: str) -> List[VoucherUsage]:
        """Vouchers a user redeemed, newest first"""
        pass
