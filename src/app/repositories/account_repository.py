"""Account Repository Interface

Read-only access to the identity provider's account mirror.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from src.domain.account import Account


class AccountRepository(ABC):

    @abstractmethod
    async def get_by_id(self, user_id: str) -> Optional[Account]:
        """
        Retrieve account by ID

        Args:
            user_id: Identity provider user id

        Returns:
            Account if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_admin_ids(self) -> List[str]:
        """Ids of every account with the admin role"""
        pass
