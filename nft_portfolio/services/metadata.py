"""
Per-token metadata resolution.

tokenURI -> gateway rewrite -> JSON document -> PortfolioEntry. Every failure
along the way is turned into an EnrichmentFailure for that token alone.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from ..errors import MetadataError, describe_error
from ..providers.base import CollectionReader
from ..providers.content import ContentFetcher
from ..types import Attribute, CollectionInfo, EnrichmentFailure, FailureStage, PortfolioEntry
from .content_address import ContentAddressResolver

logger = logging.getLogger(__name__)


def fallback_name(token_id: str) -> str:
    return f"#{token_id}"


def _text_field(document: Dict[str, Any], key: str) -> Optional[str]:
    """Return a string field, or None when it is missing, null or not text."""
    value = document.get(key)
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if not isinstance(value, str):
        return None
    return value


def parse_attributes(raw: Any) -> Optional[List[Attribute]]:
    """Keep the document's attribute order; absent unless it is a list."""
    if not isinstance(raw, list):
        return None
    attributes: List[Attribute] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        attributes.append(Attribute(
            trait_type=item.get("trait_type", item.get("traitType")),
            value=item.get("value"),
        ))
    return attributes


def build_entry(
    token_id: str,
    document: Dict[str, Any],
    collection: CollectionInfo,
    resolver: ContentAddressResolver,
) -> PortfolioEntry:
    name = _text_field(document, "name")
    description = _text_field(document, "description")
    image = _text_field(document, "image") or _text_field(document, "image_url")

    return PortfolioEntry(
        token_id=token_id,
        name=name if name else fallback_name(token_id),
        image=resolver.resolve(image) if image else "",
        description=description or "",
        attributes=parse_attributes(document.get("attributes")),
        collection=collection,
    )


class MetadataEnricher:
    """Resolve descriptive metadata for a single token."""

    def __init__(
        self,
        reader: CollectionReader,
        fetcher: ContentFetcher,
        resolver: ContentAddressResolver,
    ):
        self.reader = reader
        self.fetcher = fetcher
        self.resolver = resolver

    async def load_entry(self, contract: str, token_id: str, collection: CollectionInfo) -> PortfolioEntry:
        """Like ``fetch_metadata`` but raises on failure."""
        token_uri = await self.reader.token_uri(contract, token_id)
        location = self.resolver.resolve(token_uri)
        if not location:
            raise MetadataError("tokenURI is empty")
        document = await self.fetcher.fetch_json(location)
        return build_entry(token_id, document, collection, self.resolver)

    async def fetch_metadata(
        self,
        contract: str,
        token_id: str,
        collection: CollectionInfo,
    ) -> Union[PortfolioEntry, EnrichmentFailure]:
        try:
            return await self.load_entry(contract, token_id, collection)
        except Exception as exc:
            cause = describe_error(exc)
            logger.warning("Metadata for token %s failed: %s", token_id, cause)
            return EnrichmentFailure(token_id=token_id, stage=FailureStage.METADATA, cause=cause)
