"""Enumerate the tokens a wallet holds in an ERC-721 enumerable collection."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..errors import CollectionUnavailableError, describe_error
from ..providers.base import CollectionReader
from ..types import CollectionInfo, EnrichmentFailure, FailureStage
from .concurrency import gather_settled

logger = logging.getLogger(__name__)

DEFAULT_MAX_OWNED_TOKENS = 10_000


@dataclass
class OwnedTokens:
    collection: CollectionInfo
    balance: int
    token_ids: List[str] = field(default_factory=list)
    failures: List[EnrichmentFailure] = field(default_factory=list)


class OwnershipResolver:
    """Resolve collection info and the wallet's token identifiers.

    The name, symbol and balance reads are prerequisites: if any fails the
    whole run fails with ``CollectionUnavailableError``. So does a balance
    above ``max_tokens``, which is what a fungible token contract reports for
    a funded wallet. Per-index reads are independent; a failed index is
    reported and skipped.
    """

    def __init__(
        self,
        reader: CollectionReader,
        *,
        max_concurrency: int = 8,
        timeout_s: Optional[float] = None,
        max_tokens: int = DEFAULT_MAX_OWNED_TOKENS,
    ):
        self.reader = reader
        self.max_concurrency = max_concurrency
        self.timeout_s = timeout_s
        self.max_tokens = max_tokens

    async def _prerequisite(self, method: str, call):
        try:
            if self.timeout_s is None:
                return await call
            return await asyncio.wait_for(call, timeout=self.timeout_s)
        except Exception as exc:
            logger.error("Collection read %s failed: %s", method, describe_error(exc))
            raise CollectionUnavailableError(
                f"Could not read {method} from the collection contract ({describe_error(exc)})",
                method=method,
            ) from exc

    async def fetch_collection(self, contract: str) -> CollectionInfo:
        reads = [
            asyncio.ensure_future(self._prerequisite("name", self.reader.contract_name(contract))),
            asyncio.ensure_future(self._prerequisite("symbol", self.reader.contract_symbol(contract))),
        ]
        try:
            name, symbol = await asyncio.gather(*reads)
        except BaseException:
            # One read failed or the run was cancelled; stop the other one too
            for read in reads:
                read.cancel()
            await asyncio.gather(*reads, return_exceptions=True)
            raise
        return CollectionInfo(name=name, symbol=symbol, contract_address=contract)

    def _check_balance(self, balance) -> int:
        if isinstance(balance, bool) or not isinstance(balance, int) or balance < 0:
            raise CollectionUnavailableError(
                f"balanceOf returned an invalid balance: {balance!r}",
                method="balanceOf",
            )
        if balance > self.max_tokens:
            logger.error("balanceOf returned %d, above the limit of %d", balance, self.max_tokens)
            raise CollectionUnavailableError(
                f"balanceOf returned {balance}, more than the {self.max_tokens} tokens this service "
                "enumerates; the contract is probably not an ERC-721 collection",
                method="balanceOf",
            )
        return balance

    async def list_owned_tokens(self, contract: str, owner: str) -> OwnedTokens:
        collection = await self.fetch_collection(contract)
        balance = self._check_balance(
            await self._prerequisite("balanceOf", self.reader.balance_of(contract, owner))
        )

        async def token_at(index: int) -> int:
            return await self.reader.token_of_owner_by_index(contract, owner, index)

        settled = await gather_settled(
            range(balance),
            token_at,
            limit=self.max_concurrency,
            timeout=self.timeout_s,
        )

        result = OwnedTokens(collection=collection, balance=balance)
        seen = set()
        for outcome in settled:
            if not outcome.ok:
                cause = describe_error(outcome.error)
                logger.warning("tokenOfOwnerByIndex(%s) failed: %s", outcome.item, cause)
                result.failures.append(EnrichmentFailure(
                    index=outcome.item,
                    stage=FailureStage.OWNERSHIP,
                    cause=cause,
                ))
                continue
            token_id = str(outcome.value)
            if token_id in seen:
                # Enumeration shifted under a concurrent transfer
                result.failures.append(EnrichmentFailure(
                    token_id=token_id,
                    index=outcome.item,
                    stage=FailureStage.OWNERSHIP,
                    cause="duplicate token id in enumeration",
                ))
                continue
            seen.add(token_id)
            result.token_ids.append(token_id)

        logger.info(
            "Enumerated %d of %d tokens for %s in %s",
            len(result.token_ids), balance, owner, collection.name,
        )
        return result
