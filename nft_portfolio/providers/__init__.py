from .base import CollectionReader, ListingProvider, Provider
from .content import ContentFetcher
from .erc721 import Erc721Reader
from .opensea import OpenSeaProvider

__all__ = [
    "CollectionReader",
    "ContentFetcher",
    "Erc721Reader",
    "ListingProvider",
    "OpenSeaProvider",
    "Provider",
]
