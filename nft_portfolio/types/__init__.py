from .portfolio import (
    Attribute,
    CollectionInfo,
    EnrichmentFailure,
    FailureStage,
    Portfolio,
    PortfolioEntry,
    Price,
    PriceStatus,
)
from .responses import PortfolioResponse

__all__ = [
    "Attribute",
    "CollectionInfo",
    "EnrichmentFailure",
    "FailureStage",
    "Portfolio",
    "PortfolioEntry",
    "Price",
    "PriceStatus",
    "PortfolioResponse",
]
