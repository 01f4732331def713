"""
Read ERC20 symbol/decimals for a list of tokens in one multicall round-trip.

Usage (from repo root, with RPC_URLS in .env):

    python scripts/read_tokens.py 0xToken1 0xToken2 ...

Writes an address -> symbol JSON map to stdout, suitable for
``find_routes.py --symbols``.
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

from chain import ChainReader, DescriptorCall  # noqa: E402
from config import load_settings  # noqa: E402
from core.ids import normalize_address  # noqa: E402

ERC20_METADATA_ABI = [
    {
        "type": "function",
        "name": "symbol",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
    },
    {
        "type": "function",
        "name": "decimals",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
]


async def read_metadata(reader: ChainReader, tokens: list[str]) -> dict[str, dict]:
    calls = []
    for token in tokens:
        calls.append(DescriptorCall(token, ERC20_METADATA_ABI, "symbol", allow_failure=True))
        calls.append(DescriptorCall(token, ERC20_METADATA_ABI, "decimals", allow_failure=True))
    results = await reader.multicall(calls)

    metadata: dict[str, dict] = {}
    for idx, token in enumerate(tokens):
        symbol, decimals = results[2 * idx], results[2 * idx + 1]
        metadata[token.lower()] = {"symbol": symbol, "decimals": decimals}
    return metadata


def main() -> int:
    parser = argparse.ArgumentParser(description="Batch-read ERC20 metadata")
    parser.add_argument("tokens", nargs="+", help="Token addresses")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    tokens = [t for t in args.tokens if normalize_address(t) is not None]
    skipped = len(args.tokens) - len(tokens)
    if skipped:
        logging.getLogger(__name__).warning("skipping %d invalid address(es)", skipped)
    if not tokens:
        return 1

    reader = ChainReader.from_settings(load_settings())
    metadata = asyncio.run(read_metadata(reader, tokens))
    symbols = {addr: meta["symbol"] for addr, meta in metadata.items() if meta["symbol"]}
    print(json.dumps(symbols, indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    sys.exit(main())
