import base64
import json
import httpx
from typing import Any, Dict, Optional
from urllib.parse import unquote

from ..errors import MetadataError


def _decode_data_uri(location: str) -> str:
    """Return the payload of an on-chain ``data:`` URI as text."""
    header, sep, payload = location.partition(",")
    if not sep:
        raise MetadataError("Malformed data URI")
    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload).decode("utf-8")
        except (ValueError, UnicodeDecodeError) as exc:
            raise MetadataError("Data URI is not valid base64 text") from exc
    return unquote(payload)


def _as_object(document: Any) -> Dict[str, Any]:
    if not isinstance(document, dict):
        raise MetadataError("Metadata document is not a JSON object")
    return document


class ContentFetcher:
    """Plain unauthenticated retrieval of metadata documents"""

    name = "content"
    timeout_s = 15

    def __init__(self, *, client: Optional[httpx.AsyncClient] = None, timeout_s: Optional[float] = None):
        self._client = client
        if timeout_s is not None:
            self.timeout_s = timeout_s

    async def _get(self, location: str) -> httpx.Response:
        headers = {"Accept": "application/json"}
        if self._client is not None:
            return await self._client.get(location, headers=headers, timeout=self.timeout_s, follow_redirects=True)
        async with httpx.AsyncClient() as client:
            return await client.get(location, headers=headers, timeout=self.timeout_s, follow_redirects=True)

    async def fetch_json(self, location: str) -> Dict[str, Any]:
        if location.startswith("data:"):
            try:
                return _as_object(json.loads(_decode_data_uri(location)))
            except ValueError as exc:
                raise MetadataError("Inline metadata is not valid JSON") from exc

        if not location.startswith(("http://", "https://")):
            raise MetadataError(f"Unsupported metadata location: {location[:80] or '<empty>'}")

        response = await self._get(location)
        if response.status_code >= 400:
            raise MetadataError(f"Metadata fetch returned HTTP {response.status_code}")

        try:
            document = response.json()
        except ValueError as exc:
            raise MetadataError("Metadata document is not valid JSON") from exc
        return _as_object(document)
