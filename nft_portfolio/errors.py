"""
Error types for portfolio aggregation.

Fatal errors abort a run and reach the caller as a single run-level error.
Per-item errors are caught by the pipeline and recorded as enrichment
failures; they never escape it.
"""

import asyncio
from typing import Optional

import httpx


class PortfolioError(Exception):
    """Base class for every error raised by this package."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidAddressError(PortfolioError):
    """A contract or wallet address is malformed."""


class CollectionUnavailableError(PortfolioError):
    """A prerequisite collection read (name, symbol, balance) failed."""

    def __init__(self, message: str, method: Optional[str] = None):
        super().__init__(message)
        self.method = method


class ContractCallError(PortfolioError):
    """A single contract read failed or returned unusable data."""

    def __init__(self, message: str, method: Optional[str] = None):
        super().__init__(message)
        self.method = method


class MetadataError(PortfolioError):
    """A token metadata document could not be fetched or parsed."""


class PriceLookupError(PortfolioError):
    """The marketplace request failed or returned a malformed payload."""


def describe_error(exc: BaseException) -> str:
    """Short human-readable cause for an enrichment failure."""

    if isinstance(exc, (asyncio.TimeoutError, httpx.TimeoutException)):
        return "timed out"
    if isinstance(exc, PortfolioError):
        return exc.message
    text = str(exc)
    return f"{type(exc).__name__}: {text}" if text else type(exc).__name__
