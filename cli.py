#!/usr/bin/env python3
"""Simple CLI for inspecting a wallet's NFTs in one collection"""

import argparse
import asyncio
import sys

from nft_portfolio.errors import PortfolioError
from nft_portfolio.logging_config import setup_logging
from nft_portfolio.services.pipeline import build_portfolio
from nft_portfolio.services.view import PortfolioView, SortDirection, SortKey, format_price
from nft_portfolio.types import Portfolio, PortfolioEntry


def print_portfolio(portfolio: Portfolio, view: PortfolioView, page: int, page_size: int):
    """Pretty print one page of a portfolio view"""
    collection = portfolio.collection

    print("\n🖼  NFT Portfolio")
    print("=" * 50)
    print(f"Wallet: {portfolio.owner_address}")
    print(f"Collection: {collection.name} ({collection.symbol}) {collection.contract_address}")

    summary = view.summary()
    if summary["empty_wallet"]:
        print("\nThis wallet owns no tokens in this collection.")
        return
    if not summary["total"]:
        print(f"\n❌ Could not load any of the {summary['failed']} owned tokens.")
        print_failures(portfolio)
        return

    pages = max(view.page_count(page_size), 1)
    print(f"Showing {summary['shown']} of {summary['total']} tokens (page {page}/{pages})")
    print("-" * 50)

    for entry in view.page(page, page_size):
        print(f"#{entry.token_id:<8} {entry.name[:32]:<32} {format_price(entry):>20}")

    if summary["failed"]:
        print(f"\n⚠️  {summary['failed']} token(s) skipped")
        print_failures(portfolio)


def print_failures(portfolio: Portfolio):
    for failure in portfolio.failures:
        label = failure.token_id if failure.token_id is not None else f"index {failure.index}"
        print(f"   [{failure.stage.value}] {label}: {failure.cause}")


def print_entry(entry: PortfolioEntry):
    print(f"\n{entry.name}")
    print("=" * 50)
    if entry.description:
        print(entry.description)
    print(f"Token ID: {entry.token_id}")
    print(f"Collection: {entry.collection.name} ({entry.collection.symbol})")
    print(f"Price: {format_price(entry)}")
    if entry.image:
        print(f"Image: {entry.image}")
    if entry.attributes:
        print("\nAttributes:")
        for attribute in entry.attributes:
            print(f"  {attribute.trait_type}: {attribute.value}")


async def cli_portfolio(args):
    print(f"🔍 Fetching tokens for {args.owner}...")
    portfolio = await build_portfolio(args.contract, args.owner)
    direction = SortDirection.DESC if args.desc else SortDirection.ASC
    view = PortfolioView.of(portfolio).filter(args.filter or "").sort_by(args.sort, direction)
    print_portfolio(portfolio, view, args.page, args.page_size)


async def cli_token(args):
    portfolio = await build_portfolio(args.contract, args.owner)
    entry = PortfolioView.of(portfolio).select(args.token_id)
    if entry is None:
        print(f"❌ Token {args.token_id} is not in this wallet's portfolio")
        return
    print_entry(entry)


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not a whole number")
    if number < 1:
        raise argparse.ArgumentTypeError("must be 1 or more")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="NFT Portfolio CLI")
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    subparsers = parser.add_subparsers(dest="command")

    portfolio_parser = subparsers.add_parser("portfolio", help="List a wallet's tokens in a collection")
    portfolio_parser.add_argument("contract", help="Collection contract address")
    portfolio_parser.add_argument("owner", help="Wallet address")
    portfolio_parser.add_argument("--filter", help="Search name and description")
    portfolio_parser.add_argument("--sort", choices=[key.value for key in SortKey], default=SortKey.TOKEN_ID.value)
    portfolio_parser.add_argument("--desc", action="store_true", help="Sort descending")
    portfolio_parser.add_argument("--page", type=positive_int, default=1)
    portfolio_parser.add_argument("--page-size", type=positive_int, default=12)

    token_parser = subparsers.add_parser("token", help="Show one token in detail")
    token_parser.add_argument("contract", help="Collection contract address")
    token_parser.add_argument("owner", help="Wallet address")
    token_parser.add_argument("token_id", help="Token ID")

    return parser


async def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    # Tables go to stdout, logs to stderr
    setup_logging(args.log_level or "WARNING", log_format="console", stream=sys.stderr)

    try:
        if args.command == "portfolio":
            await cli_portfolio(args)
        elif args.command == "token":
            await cli_token(args)
    except PortfolioError as e:
        print(f"❌ Error: {e.message}")
        return 1
    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
