"""Lowest active marketplace listing for a token."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Optional

from ..errors import describe_error
from ..providers.base import ListingProvider
from ..types import Price, PriceStatus

logger = logging.getLogger(__name__)


@dataclass
class PriceLookup:
    """Price outcome that keeps "not for sale" apart from "lookup failed"."""

    status: PriceStatus
    price: Optional[Price] = None
    cause: Optional[str] = None


def _to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def listing_price(listing: Dict[str, Any]) -> Optional[Price]:
    """Convert one listing's base-unit price into a human amount.

    Returns None when the price, decimals or symbol is missing or unusable.
    """
    payment_token = listing.get("payment_token_contract")
    if not isinstance(payment_token, dict):
        return None

    decimals = _to_int(payment_token.get("decimals"))
    symbol = payment_token.get("symbol")
    raw_price = listing.get("current_price")
    if decimals is None or decimals < 0 or not symbol or raw_price is None:
        return None

    try:
        raw = Decimal(str(raw_price).strip())
    except InvalidOperation:
        return None
    if not raw.is_finite() or raw < 0:
        return None
    if raw == raw.to_integral_value():
        raw = Decimal(int(raw))

    return Price(amount=raw.scaleb(-decimals), currency=str(symbol))


def select_lowest_price(listings: Iterable[Dict[str, Any]]) -> Optional[Price]:
    """Minimum over the usable listings; the first one wins on ties.

    Amounts are only comparable within one payment token, so the currency of
    the first usable listing decides which listings take part. Listings in
    other currencies are skipped.
    """
    lowest: Optional[Price] = None
    for listing in listings:
        price = listing_price(listing)
        if price is None:
            continue
        if lowest is None:
            lowest = price
        elif price.currency == lowest.currency and price.amount < lowest.amount:
            lowest = price
    return lowest


class PriceEnricher:
    """Resolve the current lowest listing price for a single token."""

    def __init__(self, provider: ListingProvider):
        self.provider = provider

    async def lookup(self, contract: str, token_id: str) -> PriceLookup:
        try:
            listings = await self.provider.get_listings(contract, token_id)
        except Exception as exc:
            cause = describe_error(exc)
            logger.warning("Price lookup for token %s failed: %s", token_id, cause)
            return PriceLookup(status=PriceStatus.UNAVAILABLE, cause=cause)

        if not listings:
            return PriceLookup(status=PriceStatus.NOT_LISTED)

        price = select_lowest_price(listings)
        if price is None:
            logger.warning("Token %s has %d listings but none with a usable price", token_id, len(listings))
            return PriceLookup(
                status=PriceStatus.UNAVAILABLE,
                cause="listings missing price, decimals or symbol",
            )
        return PriceLookup(status=PriceStatus.LISTED, price=price)

    async def fetch_price(self, contract: str, token_id: str) -> Optional[Price]:
        return (await self.lookup(contract, token_id)).price
