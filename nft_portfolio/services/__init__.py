from .concurrency import Settled, gather_settled
from .content_address import ContentAddressResolver, resolve_reference
from .metadata import MetadataEnricher
from .ownership import OwnedTokens, OwnershipResolver
from .pipeline import AggregationPipeline, build_portfolio, normalize_address
from .pricing import PriceEnricher, PriceLookup, select_lowest_price
from .session import PortfolioSession
from .view import PortfolioView, SortDirection, SortKey, format_price

__all__ = [
    "AggregationPipeline",
    "ContentAddressResolver",
    "MetadataEnricher",
    "OwnedTokens",
    "OwnershipResolver",
    "PortfolioSession",
    "PortfolioView",
    "PriceEnricher",
    "PriceLookup",
    "Settled",
    "SortDirection",
    "SortKey",
    "build_portfolio",
    "format_price",
    "gather_settled",
    "normalize_address",
    "resolve_reference",
    "select_lowest_price",
]
