"""
Enumerate swap routes between two assets from a pool snapshot.

The snapshot is the JSON the pool data provider returns (a list of pools
with their ``relatedVtps``). Symbols are optional and come from a JSON file
mapping address -> symbol.

Usage (from repo root):

    python scripts/find_routes.py pools.json 0xFrom 0xTo --max-hops 3
    python scripts/find_routes.py pools.json 0xFrom 0xTo --amount 1000000 --quote

``--quote`` asks UI_POOL_DATA_PROVIDER.calcBetterPath for the best route,
using RPC_URLS from .env.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Ensure src/ is on sys.path
ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from chain import ChainReader, Contract  # noqa: E402
from config import load_settings  # noqa: E402
from routing import RouteFinder, build_graph  # noqa: E402

CALC_BETTER_PATH_ABI = [
    {
        "type": "function",
        "name": "calcBetterPath",
        "stateMutability": "view",
        "inputs": [
            {"name": "asset", "type": "address"},
            {"name": "amount", "type": "uint256"},
            {"name": "allPaths", "type": "uint32[][]"},
            {"name": "feeDiscount", "type": "uint256"},
        ],
        "outputs": [
            {"name": "userReceive", "type": "uint256"},
            {"name": "bestPath", "type": "uint32[]"},
            {"name": "assets", "type": "address[]"},
            {"name": "amountsOut", "type": "uint256[]"},
            {"name": "fees", "type": "uint256[]"},
        ],
    }
]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Enumerate VTP swap routes")
    parser.add_argument("pools", help="Path to pools JSON snapshot")
    parser.add_argument("token_in", help="Input asset address")
    parser.add_argument("token_out", help="Output asset address")
    parser.add_argument("--symbols", help="Path to address -> symbol JSON file")
    parser.add_argument("--max-hops", type=int, default=None, help="Hop limit")
    parser.add_argument("--amount", type=int, default=0, help="Raw input amount")
    parser.add_argument(
        "--quote", action="store_true", help="Pick the best route on-chain"
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def _load_json(path: str):
    with open(path, "r", encoding="utf-8") as handle:
        return json.load(handle)


async def _quote(finder: RouteFinder, args: argparse.Namespace, max_hops: int) -> int:
    settings = load_settings()
    if not settings.ui_pool_data_provider:
        raise SystemExit("UI_POOL_DATA_PROVIDER env var is required for --quote")
    reader = ChainReader.from_settings(settings)
    provider = Contract.from_abi(settings.ui_pool_data_provider, CALC_BETTER_PATH_ABI)
    route, amount_out = await finder.find_best_route(
        reader,
        provider,
        args.token_in,
        args.token_out,
        args.amount,
        max_hops=max_hops,
    )
    print(f"best: {route.describe(finder.graph)} ids={list(route.pair_ids)}")
    print(f"amount_out: {amount_out}")
    return 0


def main() -> int:
    args = _build_parser().parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    pools = _load_json(args.pools)
    symbols = _load_json(args.symbols) if args.symbols else {}
    max_hops = args.max_hops
    if max_hops is None:
        max_hops = load_settings(require_rpc=False).max_hops

    graph = build_graph(pools, symbols)
    finder = RouteFinder(graph)
    routes = finder.find_all_routes(args.token_in, args.token_out, max_hops=max_hops)
    if not routes:
        print("No valid path")
        return 1

    for idx, route in enumerate(routes):
        print(f"[{idx}] {route.describe(graph)} ids={list(route.pair_ids)}")

    if args.quote:
        if args.amount <= 0:
            print("--amount must be positive to quote")
            return 2
        return asyncio.run(_quote(finder, args, max_hops))
    return 0


if __name__ == "__main__":
    sys.exit(main())
