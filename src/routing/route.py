from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional, Sequence

from eth_abi.exceptions import DecodingError

from chain.errors import ChainError
from core.ids import normalize_address, normalize_id

from .graph import Pair, TokenGraph
from .paths import enumerate_paths, path_ids

if TYPE_CHECKING:
    from chain.abi import Contract
    from chain.reader import ChainReader

logger = logging.getLogger(__name__)


class Route:
    """Represents a swap route through one or more VTPs."""

    def __init__(self, pairs: Sequence[Pair], path: Sequence[str]):
        if not pairs:
            raise ValueError("route needs at least one pair")
        if len(path) != len(pairs) + 1:
            raise ValueError("path length must be pairs + 1")
        self.pairs = tuple(pairs)
        self.path = tuple(path)  # token_in → intermediate... → token_out

    @classmethod
    def from_pairs(cls, token_in: str, pairs: Sequence[Pair]) -> "Route":
        """Walk the pairs from ``token_in`` to recover the asset path."""
        current = normalize_address(token_in)
        if current is None:
            raise ValueError("token_in must be an address")
        assets = [current]
        for pair in pairs:
            nxt = pair.other_asset(current)
            if nxt is None:
                raise ValueError(f"VTP {pair.id} does not continue from {current}")
            assets.append(nxt)
            current = nxt
        return cls(pairs, assets)

    @property
    def num_hops(self) -> int:
        return len(self.pairs)

    @property
    def token_in(self) -> str:
        return self.path[0]

    @property
    def token_out(self) -> str:
        return self.path[-1]

    @property
    def pair_ids(self) -> tuple[int, ...]:
        return path_ids(self.pairs)

    def pool_ids_in(self) -> list[Optional[int]]:
        """Pool id on the input side of every hop."""
        return [pair.pool_id_for(asset) for pair, asset in zip(self.pairs, self.path)]

    def describe(self, graph: TokenGraph) -> str:
        """Readable chain: ``WETH => (WETH/USDC) => USDC``."""
        parts = [graph.symbol(self.token_in)]
        for pair in self.pairs:
            parts.append(f"({graph.symbol(pair.asset0)}/{graph.symbol(pair.asset1)})")
        parts.append(graph.symbol(self.token_out))
        return " => ".join(parts)

    def __repr__(self) -> str:
        return f"Route(pair_ids={list(self.pair_ids)})"


class RouteFinder:
    """
    Finds candidate routes between assets and picks the best one.

    Enumeration is local; valuation is delegated to the pool data provider's
    ``calcBetterPath`` view, read through the rate-limited ``ChainReader``.
    """

    def __init__(self, graph: TokenGraph):
        self.graph = graph

    def find_all_routes(
        self, token_in: str, token_out: str, max_hops: int = 3
    ) -> list[Route]:
        """
        Find all possible routes up to max_hops.
        """
        paths = enumerate_paths(token_in, token_out, self.graph, max_depth=max_hops)
        return [Route.from_pairs(token_in, pairs) for pairs in paths]

    @staticmethod
    def select_route(routes: Sequence[Route], best_ids: Sequence[Any]) -> Route:
        """Match a VTP id sequence against the candidates; fall back to the first."""
        if not routes:
            raise ValueError("No route found")
        wanted = tuple(normalize_id(raw) for raw in best_ids)
        for route in routes:
            if route.pair_ids == wanted:
                return route
        return routes[0]

    async def find_best_route(
        self,
        reader: "ChainReader",
        provider: "Contract",
        token_in: str,
        token_out: str,
        amount_in: int,
        max_hops: int = 3,
        fee_discount: int = 0,
    ) -> tuple[Route, int]:
        """
        Find route that maximizes output according to the on-chain quoter.
        Returns (best_route, amount_out).
        """
        if not isinstance(amount_in, int):
            raise TypeError("amount_in must be int")
        if amount_in <= 0:
            raise ValueError("amount_in must be positive")

        routes = self.find_all_routes(token_in, token_out, max_hops=max_hops)
        if not routes:
            raise ValueError("No route found")

        all_paths = [list(route.pair_ids) for route in routes]
        try:
            result = await reader.call_function(
                provider,
                "calcBetterPath",
                [routes[0].token_in, amount_in, all_paths, fee_discount],
            )
        except (ChainError, DecodingError, ValueError) as exc:
            logger.warning("calcBetterPath failed, using first route: %s", exc)
            return routes[0], 0

        amount_out = int(result[0])
        best = self.select_route(routes, result[1])
        logger.info(
            "best route %s out=%d among %d candidates",
            best.describe(self.graph),
            amount_out,
            len(routes),
        )
        return best, amount_out
