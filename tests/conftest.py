import asyncio
from typing import Any, Dict, List, Optional

import pytest

from nft_portfolio.errors import ContractCallError, MetadataError
from nft_portfolio.providers.base import CollectionReader, ListingProvider
from nft_portfolio.services.content_address import ContentAddressResolver
from nft_portfolio.services.metadata import MetadataEnricher
from nft_portfolio.services.ownership import OwnershipResolver
from nft_portfolio.services.pipeline import AggregationPipeline
from nft_portfolio.services.pricing import PriceEnricher

CONTRACT = "0x" + "ab" * 20
OWNER = "0x" + "12" * 20
OTHER_OWNER = "0x" + "34" * 20
GATEWAY = "https://gateway.test/ipfs"


class FakeReader(CollectionReader):
    """In-memory ERC-721 contract keyed by owner."""

    name = "fake"

    def __init__(
        self,
        holdings: Optional[Dict[str, List[int]]] = None,
        *,
        collection_name: str = "Test Apes",
        collection_symbol: str = "TAPE",
        failing_methods: Optional[set] = None,
        failing_indices: Optional[set] = None,
        failing_uris: Optional[set] = None,
        delay: float = 0.0,
        balance: Optional[int] = None,
    ):
        self.holdings = {owner.lower(): ids for owner, ids in (holdings or {}).items()}
        self.collection_name = collection_name
        self.collection_symbol = collection_symbol
        self.failing_methods = failing_methods or set()
        self.failing_indices = failing_indices or set()
        self.failing_uris = failing_uris or set()
        self.delay = delay
        self.balance = balance
        self.calls: List[str] = []

    async def ready(self) -> bool:
        return True

    async def health_check(self) -> Dict[str, Any]:
        return {"status": "healthy"}

    async def _step(self, method: str) -> None:
        self.calls.append(method)
        if self.delay:
            await asyncio.sleep(self.delay)
        if method in self.failing_methods:
            raise ContractCallError(f"{method} failed: execution reverted", method=method)

    async def contract_name(self, contract: str) -> str:
        await self._step("name")
        return self.collection_name

    async def contract_symbol(self, contract: str) -> str:
        await self._step("symbol")
        return self.collection_symbol

    async def balance_of(self, contract: str, owner: str) -> int:
        await self._step("balanceOf")
        if self.balance is not None:
            return self.balance
        return len(self.holdings.get(owner.lower(), []))

    async def token_of_owner_by_index(self, contract: str, owner: str, index: int) -> int:
        await self._step("tokenOfOwnerByIndex")
        if index in self.failing_indices:
            raise ContractCallError("tokenOfOwnerByIndex failed: execution reverted", method="tokenOfOwnerByIndex")
        return self.holdings[owner.lower()][index]

    async def token_uri(self, contract: str, token_id: str) -> str:
        await self._step("tokenURI")
        if token_id in self.failing_uris:
            raise ContractCallError("tokenURI failed: execution reverted", method="tokenURI")
        return f"ipfs://meta/{token_id}.json"


class FakeFetcher:
    """Serves metadata documents by token id parsed from the location."""

    def __init__(self, documents: Optional[Dict[str, Any]] = None, default: bool = True):
        self.documents = documents or {}
        self.default = default
        self.locations: List[str] = []

    async def fetch_json(self, location: str) -> Dict[str, Any]:
        self.locations.append(location)
        token_id = location.rsplit("/", 1)[-1].removesuffix(".json")
        document = self.documents.get(token_id)
        if isinstance(document, BaseException):
            raise document
        if isinstance(document, (int, float)):
            await asyncio.sleep(document)
            document = None
        if document is None:
            if not self.default:
                raise MetadataError("Metadata fetch returned HTTP 404")
            document = {
                "name": f"Ape {token_id}",
                "description": f"Ape number {token_id}",
                "image": f"ipfs://img/{token_id}.png",
            }
        return document


class FakeListings(ListingProvider):
    name = "fake-market"

    def __init__(self, listings: Optional[Dict[str, Any]] = None):
        self.listings = listings or {}
        self.requested: List[str] = []

    async def ready(self) -> bool:
        return True

    async def health_check(self) -> Dict[str, Any]:
        return {"status": "healthy"}

    async def get_listings(self, contract: str, token_id: str) -> List[Dict[str, Any]]:
        self.requested.append(token_id)
        result = self.listings.get(token_id, [])
        if isinstance(result, BaseException):
            raise result
        return result


def listing(price: Any, decimals: Any = 18, symbol: Optional[str] = "ETH") -> Dict[str, Any]:
    token: Dict[str, Any] = {}
    if decimals is not None:
        token["decimals"] = decimals
    if symbol is not None:
        token["symbol"] = symbol
    return {"current_price": price, "payment_token_contract": token}


def make_pipeline(
    reader: FakeReader,
    fetcher: Optional[FakeFetcher] = None,
    market: Optional[FakeListings] = None,
    *,
    max_concurrency: int = 4,
    timeout_s: Optional[float] = 2.0,
) -> AggregationPipeline:
    resolver = ContentAddressResolver({"ipfs://": GATEWAY})
    return AggregationPipeline(
        OwnershipResolver(reader, max_concurrency=max_concurrency, timeout_s=timeout_s),
        MetadataEnricher(reader, fetcher or FakeFetcher(), resolver),
        PriceEnricher(market or FakeListings()),
        max_concurrency=max_concurrency,
        timeout_s=timeout_s,
    )


@pytest.fixture
def reader():
    return FakeReader({OWNER: [7, 3, 11]})


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def market():
    return FakeListings()
