"""Access Cache Interface

Short-lived cache of access decisions, keyed by user id.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class AccessCache(ABC):
    """
    Cache for AccessDecision payloads

    Entries expire after a short TTL; writers invalidate the user they
    touched so the next read reflects the mutation.
    """

    @abstractmethod
    async def get(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Cached decision payload, or None on miss"""
        pass

    @abstractmethod
    async def set(self, user_id: str, decision: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    async def invalidate(self, user_id: str) -> None:
        pass
