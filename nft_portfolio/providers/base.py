from abc import ABC, abstractmethod
from typing import Any, Dict, List


class Provider(ABC):
    """Base provider interface"""

    name: str
    timeout_s: float = 10

    @abstractmethod
    async def ready(self) -> bool:
        """Check if provider is ready to serve requests"""
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Return provider health status"""
        pass


class CollectionReader(Provider):
    """Read-only view of an ERC-721 enumerable contract"""

    @abstractmethod
    async def contract_name(self, contract: str) -> str:
        pass

    @abstractmethod
    async def contract_symbol(self, contract: str) -> str:
        pass

    @abstractmethod
    async def balance_of(self, contract: str, owner: str) -> int:
        pass

    @abstractmethod
    async def token_of_owner_by_index(self, contract: str, owner: str, index: int) -> int:
        pass

    @abstractmethod
    async def token_uri(self, contract: str, token_id: str) -> str:
        pass


class ListingProvider(Provider):
    """Provider for marketplace sell listings"""

    @abstractmethod
    async def get_listings(self, contract: str, token_id: str) -> List[Dict[str, Any]]:
        """Return the active sell listings for a single token"""
        pass
