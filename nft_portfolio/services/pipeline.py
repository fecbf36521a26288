"""
Portfolio aggregation pipeline.

Stage 1 resolves the collection and the wallet's token ids (fatal on failure).
Stage 2 fans out metadata lookups and drops tokens whose metadata fails.
Stage 3 fans out price lookups over the survivors and attaches each result by
token id. Each stage is a full join; per-item failures end up in
``Portfolio.failures``.
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

import httpx
import structlog
from eth_utils import to_checksum_address

from ..config import PipelineConfig
from ..errors import InvalidAddressError, describe_error
from ..providers.content import ContentFetcher
from ..providers.erc721 import Erc721Reader
from ..providers.opensea import OpenSeaProvider
from ..types import EnrichmentFailure, FailureStage, Portfolio, PortfolioEntry, PriceStatus
from .concurrency import gather_settled
from .content_address import ContentAddressResolver
from .metadata import MetadataEnricher
from .ownership import OwnershipResolver
from .pricing import PriceEnricher, PriceLookup

logger = logging.getLogger(__name__)

_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")


def normalize_address(address: str, label: str = "address") -> str:
    if not address:
        raise InvalidAddressError(f"{label.capitalize()} is required")
    address = address.strip()
    if not _ADDRESS_RE.fullmatch(address):
        raise InvalidAddressError(f"Invalid {label}: {address}")
    return to_checksum_address(address)


class AggregationPipeline:
    """Build a Portfolio for one wallet in one collection."""

    def __init__(
        self,
        ownership: OwnershipResolver,
        metadata: MetadataEnricher,
        pricing: PriceEnricher,
        *,
        max_concurrency: int = 8,
        timeout_s: Optional[float] = 15.0,
    ):
        self.ownership = ownership
        self.metadata = metadata
        self.pricing = pricing
        self.max_concurrency = max_concurrency
        self.timeout_s = timeout_s

    @classmethod
    def from_config(cls, config: PipelineConfig, client: Optional[httpx.AsyncClient] = None) -> "AggregationPipeline":
        """Wire the default providers around one shared HTTP client."""
        timeout = config.request_timeout_seconds
        reader = Erc721Reader(config.rpc_url, client=client, timeout_s=timeout)
        resolver = ContentAddressResolver(config.gateways)
        return cls(
            OwnershipResolver(
                reader,
                max_concurrency=config.max_concurrent_requests,
                timeout_s=timeout,
                max_tokens=config.max_owned_tokens,
            ),
            MetadataEnricher(reader, ContentFetcher(client=client, timeout_s=timeout), resolver),
            PriceEnricher(OpenSeaProvider(config.opensea_api_key, config.opensea_base_url, client=client, timeout_s=timeout)),
            max_concurrency=config.max_concurrent_requests,
            timeout_s=timeout,
        )

    async def run(self, contract: str, owner: str) -> Portfolio:
        contract = normalize_address(contract, "contract address")
        owner = normalize_address(owner, "wallet address")

        run_id = uuid.uuid4().hex[:8]
        started_at = datetime.now(timezone.utc)
        start = time.perf_counter()

        with structlog.contextvars.bound_contextvars(run_id=run_id):
            logger.info("Portfolio run %s started for %s in %s", run_id, owner, contract)

            owned = await self.ownership.list_owned_tokens(contract, owner)
            failures: List[EnrichmentFailure] = list(owned.failures)

            entries = await self._enrich_metadata(contract, owned.token_ids, owned.collection, failures)
            entries = await self._enrich_prices(contract, entries, failures)

            latency_ms = int((time.perf_counter() - start) * 1000)
            logger.info(
                "Portfolio run %s finished: %d entries, %d failures in %dms",
                run_id, len(entries), len(failures), latency_ms,
            )

        return Portfolio(
            contract_address=contract,
            owner_address=owner,
            collection=owned.collection,
            entries=entries,
            failures=failures,
            fetched_at=started_at,
            latency_ms=latency_ms,
        )

    async def _enrich_metadata(self, contract, token_ids, collection, failures) -> List[PortfolioEntry]:
        async def worker(token_id: str):
            return await self.metadata.fetch_metadata(contract, token_id, collection)

        settled = await gather_settled(token_ids, worker, limit=self.max_concurrency, timeout=self.timeout_s)

        entries: List[PortfolioEntry] = []
        for outcome in settled:
            if not outcome.ok:
                cause = describe_error(outcome.error)
                logger.warning("Metadata for token %s failed: %s", outcome.item, cause)
                failures.append(EnrichmentFailure(token_id=outcome.item, stage=FailureStage.METADATA, cause=cause))
            elif isinstance(outcome.value, EnrichmentFailure):
                failures.append(outcome.value)
            else:
                entries.append(outcome.value)
        return entries

    async def _enrich_prices(self, contract, entries, failures) -> List[PortfolioEntry]:
        async def worker(entry: PortfolioEntry) -> PriceLookup:
            return await self.pricing.lookup(contract, entry.token_id)

        settled = await gather_settled(entries, worker, limit=self.max_concurrency, timeout=self.timeout_s)

        lookups: Dict[str, PriceLookup] = {}
        for outcome in settled:
            if outcome.ok:
                lookups[outcome.item.token_id] = outcome.value
            else:
                lookups[outcome.item.token_id] = PriceLookup(
                    status=PriceStatus.UNAVAILABLE,
                    cause=describe_error(outcome.error),
                )

        priced: List[PortfolioEntry] = []
        for entry in entries:
            lookup = lookups[entry.token_id]
            if lookup.status == PriceStatus.UNAVAILABLE:
                failures.append(EnrichmentFailure(
                    token_id=entry.token_id,
                    stage=FailureStage.PRICE,
                    cause=lookup.cause or "price unavailable",
                ))
            priced.append(entry.model_copy(update={"price": lookup.price, "price_status": lookup.status}))
        return priced


async def build_portfolio(contract: str, owner: str, config: Optional[PipelineConfig] = None) -> Portfolio:
    """Run the pipeline with the default providers.

    The HTTP client lives only as long as the run, so cancelling the run
    closes every in-flight connection it opened.
    """
    config = config or PipelineConfig.from_settings()
    limits = httpx.Limits(max_connections=config.max_concurrent_requests * 2)
    async with httpx.AsyncClient(limits=limits) as client:
        pipeline = AggregationPipeline.from_config(config, client)
        return await pipeline.run(contract, owner)
