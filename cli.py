#!/usr/bin/env python3
"""Simple CLI for exercising the swap engine locally"""

import argparse
import asyncio
from typing import List, Optional

from swap_engine.core.swap.errors import SwapError
from swap_engine.core.swap.models import Route, Token
from swap_engine.core.swap.request_builder import build_swap_request, format_token_amount
from swap_engine.engine import get_engine
from swap_engine.logging_config import setup_logging


def print_route(route: Route):
    """Pretty print a quote"""
    summary = route.summary()
    print("\n🔀 Quote")
    print("=" * 50)
    print(f"From: {format_token_amount(route.from_amount, route.from_token.decimals)} "
          f"{route.from_token.symbol} (chain {route.from_chain_id})")
    print(f"To:   {format_token_amount(route.to_amount, route.to_token.decimals)} "
          f"{route.to_token.symbol} (chain {route.to_chain_id})")
    print(f"Min:  {format_token_amount(route.to_amount_min, route.to_token.decimals)} {route.to_token.symbol}")
    if summary["gas_cost_usd"] is not None:
        print(f"Gas:  ${float(summary['gas_cost_usd']):,.2f} USD")
    print(f"ETA:  ~{summary['estimated_minutes']} min")

    print("\nSteps:")
    print("-" * 50)
    for step in summary["steps"]:
        gas = f"${float(step['gas_cost_usd']):,.2f}" if step["gas_cost_usd"] is not None else "n/a"
        print(f"{step['index'] + 1:2d}. {step['tool_name']:<20} gas {gas:>10}  ~{step['estimated_minutes']} min")


async def cli_chains():
    engine = get_engine()
    chains = await engine.directory.list_chains()
    for chain in sorted(chains, key=lambda c: c.id):
        print(f"{chain.id:>10}  {chain.name}")


async def cli_tokens(chain_id: int, search: Optional[str] = None):
    engine = get_engine()
    tokens = await engine.directory.list_tokens(chain_id)
    if search:
        needle = search.lower()
        tokens = [t for t in tokens if needle in t.symbol.lower() or needle in t.name.lower()]
    for token in tokens:
        marker = " (native)" if token.is_native else ""
        print(f"{token.symbol:<10} {token.address}  decimals={token.decimals}{marker}")


async def cli_quote(args):
    engine = get_engine()
    print(f"🔍 Quoting {args.amount} on chain {args.from_chain} → chain {args.to_chain}...")
    request = await build_swap_request(
        engine.directory,
        amount=args.amount,
        from_chain_id=args.from_chain,
        to_chain_id=args.to_chain,
        from_token_address=args.from_token,
        to_token_address=args.to_token,
        from_address=args.address,
        slippage=args.slippage,
        default_slippage=engine.config.default_slippage,
    )
    outcome = await engine.quote_service.request_quote(request)
    if isinstance(outcome, Route):
        print_route(outcome)
    else:
        print(f"❌ {outcome.user_message}")


async def cli_balances(address: str, chain_id: int, token_addresses: List[str]):
    engine = get_engine()
    tokens: List[Token] = []
    for token_address in token_addresses:
        token = await engine.directory.get_token(chain_id, token_address)
        if token is None:
            print(f"⚠️  Unknown token {token_address} on chain {chain_id}")
            continue
        tokens.append(token)

    snapshot = await engine.reconciler.snapshot(address, tokens)
    for token in tokens:
        raw = snapshot.get(token)
        shown = format_token_amount(raw, token.decimals) if raw is not None else "unavailable"
        print(f"{token.symbol:<10} {shown}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Swap Engine CLI")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("chains", help="List chains known to the routing service")

    tokens_parser = subparsers.add_parser("tokens", help="List tokens on a chain")
    tokens_parser.add_argument("chain_id", type=int, help="Chain id")
    tokens_parser.add_argument("--search", help="Filter by symbol or name")

    quote_parser = subparsers.add_parser("quote", help="Fetch the recommended route")
    quote_parser.add_argument("amount", help="Display amount, e.g. 1.5")
    quote_parser.add_argument("from_chain", type=int, help="Source chain id")
    quote_parser.add_argument("from_token", help="Source token address")
    quote_parser.add_argument("to_chain", type=int, help="Destination chain id")
    quote_parser.add_argument("to_token", help="Destination token address")
    quote_parser.add_argument("--address", required=True, help="Wallet address executing the swap")
    quote_parser.add_argument("--slippage", type=float, help="Slippage fraction (default: 0.005)")

    balances_parser = subparsers.add_parser("balances", help="Read token balances")
    balances_parser.add_argument("address", help="Wallet address")
    balances_parser.add_argument("chain_id", type=int, help="Chain id")
    balances_parser.add_argument("tokens", nargs="+", help="Token addresses")

    return parser


async def main():
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    setup_logging("WARNING")
    command = args.command.lower()

    try:
        if command == "chains":
            await cli_chains()

        elif command == "tokens":
            await cli_tokens(args.chain_id, args.search)

        elif command == "quote":
            await cli_quote(args)

        elif command == "balances":
            await cli_balances(args.address, args.chain_id, args.tokens)

        else:
            print(f"❌ Unknown command: {command}")
            parser.print_help()
    except SwapError as e:
        print(f"❌ Error: {e.message}")


if __name__ == "__main__":
    asyncio.run(main())
