"""Wallet NFT portfolio aggregation: ownership, metadata and marketplace prices."""

__version__ = "0.1.0"
