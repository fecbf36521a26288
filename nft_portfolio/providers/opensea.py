import httpx
from typing import Any, Dict, List, Optional

from ..errors import PriceLookupError
from .base import ListingProvider


class OpenSeaProvider(ListingProvider):
    """OpenSea asset API provider for active sell listings"""

    name = "opensea"
    timeout_s = 15

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = "https://api.opensea.io",
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout_s: Optional[float] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._client = client
        if timeout_s is not None:
            self.timeout_s = timeout_s

    def _build_headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {"Accept": "application/json"}
        if self.api_key:
            headers["X-API-KEY"] = self.api_key
        return headers

    async def ready(self) -> bool:
        return True  # Keyless requests work but are heavily rate-limited

    async def health_check(self) -> Dict[str, Any]:
        status = "healthy" if self.api_key else "degraded"
        return {"status": status, "api_key": bool(self.api_key)}

    async def _get(self, url: str) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(url, headers=self._build_headers(), timeout=self.timeout_s)
        async with httpx.AsyncClient() as client:
            return await client.get(url, headers=self._build_headers(), timeout=self.timeout_s)

    async def get_listings(self, contract: str, token_id: str) -> List[Dict[str, Any]]:
        """Get the raw sell orders for one token.

        A 404 means the marketplace does not know the asset, which is the
        same as it not being for sale.
        """
        response = await self._get(f"{self.base_url}/api/v1/asset/{contract}/{token_id}/")

        if response.status_code == 404:
            return []
        if response.status_code in (401, 403):
            raise PriceLookupError(f"OpenSea rejected the request ({response.status_code}); check the API key")
        if response.status_code == 429:
            raise PriceLookupError("OpenSea rate limit exceeded")
        if response.status_code >= 400:
            raise PriceLookupError(f"OpenSea returned HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as exc:
            raise PriceLookupError("OpenSea returned a non-JSON body") from exc

        if not isinstance(data, dict):
            raise PriceLookupError("OpenSea returned an unexpected payload")

        orders = data.get("sell_orders") or []
        if not isinstance(orders, list):
            raise PriceLookupError("OpenSea sell_orders is not a list")
        return [order for order in orders if isinstance(order, dict)]
