"""
Read-only projections over portfolio entries.

Views never mutate the entries they are built from; every operation returns
a new view.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from ..providers.erc721 import parse_token_id
from ..types import Portfolio, PortfolioEntry, PriceStatus


class SortKey(str, Enum):
    TOKEN_ID = "token_id"
    NAME = "name"
    COLLECTION = "collection"
    PRICE = "price"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


def _token_id_key(entry: PortfolioEntry) -> Tuple[int, int, str]:
    try:
        return (0, parse_token_id(entry.token_id), "")
    except ValueError:
        return (1, 0, entry.token_id)


_SORT_KEYS = {
    SortKey.TOKEN_ID: _token_id_key,
    SortKey.NAME: lambda entry: entry.name.casefold(),
    SortKey.COLLECTION: lambda entry: entry.collection.name.casefold(),
}


def format_price(entry: PortfolioEntry) -> str:
    if entry.price is not None:
        return f"{entry.price.amount:.3f} {entry.price.currency}"
    if entry.price_status == PriceStatus.UNAVAILABLE:
        return "Price unavailable"
    if entry.price_status == PriceStatus.PENDING:
        return "Loading price"
    return "Not for sale"


class PortfolioView:
    """Filtered and ordered view over a fixed sequence of entries."""

    def __init__(
        self,
        entries: Sequence[PortfolioEntry],
        *,
        query: str = "",
        sort_key: SortKey = SortKey.TOKEN_ID,
        direction: SortDirection = SortDirection.ASC,
        failures: int = 0,
    ):
        self._source: Tuple[PortfolioEntry, ...] = tuple(entries)
        self.query = query
        self.sort_key = SortKey(sort_key)
        self.direction = SortDirection(direction)
        self.failures = failures
        self._entries = self._derive()

    @classmethod
    def of(cls, portfolio: Portfolio) -> "PortfolioView":
        return cls(portfolio.entries, failures=portfolio.failed_count)

    def _derive(self) -> Tuple[PortfolioEntry, ...]:
        needle = self.query.casefold()
        matched = [
            entry for entry in self._source
            if not needle or needle in entry.name.casefold() or needle in entry.description.casefold()
        ]
        reverse = self.direction == SortDirection.DESC

        if self.sort_key == SortKey.PRICE:
            priced = [entry for entry in matched if entry.price is not None]
            unpriced = [entry for entry in matched if entry.price is None]
            priced.sort(key=lambda entry: entry.price.amount, reverse=reverse)
            return tuple(priced + unpriced)

        return tuple(sorted(matched, key=_SORT_KEYS[self.sort_key], reverse=reverse))

    def _copy(self, **changes: Any) -> "PortfolioView":
        params = {
            "query": self.query,
            "sort_key": self.sort_key,
            "direction": self.direction,
            "failures": self.failures,
        }
        params.update(changes)
        return PortfolioView(self._source, **params)

    @property
    def entries(self) -> Tuple[PortfolioEntry, ...]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def filter(self, substring: str) -> "PortfolioView":
        return self._copy(query=substring or "")

    def sort_by(
        self,
        key: Union[SortKey, str],
        direction: Union[SortDirection, str] = SortDirection.ASC,
    ) -> "PortfolioView":
        return self._copy(sort_key=SortKey(key), direction=SortDirection(direction))

    def select(self, token_id: str) -> Optional[PortfolioEntry]:
        """Look up an entry for detail display, ignoring the current filter."""
        for entry in self._source:
            if entry.token_id == token_id:
                return entry
        return None

    def page(self, number: int, size: int) -> List[PortfolioEntry]:
        if number < 1 or size < 1:
            raise ValueError("Page number and size must be positive")
        start = (number - 1) * size
        return list(self._entries[start:start + size])

    def page_count(self, size: int) -> int:
        if size < 1:
            raise ValueError("Page size must be positive")
        return (len(self._entries) + size - 1) // size

    def summary(self) -> Dict[str, Any]:
        return {
            "total": len(self._source),
            "shown": len(self._entries),
            "priced": sum(1 for entry in self._source if entry.price is not None),
            "failed": self.failures,
            "empty_wallet": not self._source and not self.failures,
        }
