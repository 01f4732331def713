"""Asset/VTP graph built from raw pool records.

Pool records come from the pool data provider as nested structures:

    pool.relatedVtps[]
        .params.id
        .token0.params.asset / .token0.params.id
        .token1.params.asset / .token1.params.id

Both mappings and attribute-style objects are accepted, with camelCase or
snake_case field names. The build never touches the network: symbols come
from a pre-populated cache only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

from core.ids import normalize_address, normalize_id, truncate_address

logger = logging.getLogger(__name__)

_MISSING = object()


def _field(record: Any, *names: str) -> Any:
    if record is None:
        return None
    for name in names:
        if isinstance(record, Mapping):
            value = record.get(name, _MISSING)
        else:
            value = getattr(record, name, _MISSING)
        if value is not _MISSING:
            return value
    return None


def _token_params(vtp: Any, side: str) -> Any:
    return _field(_field(vtp, side), "params")


@dataclass(frozen=True)
class Pair:
    """A VTP: an edge between two assets with a unique integer id."""

    id: int
    asset0: Optional[str]
    asset1: Optional[str]
    pool_id0: Optional[int] = None
    pool_id1: Optional[int] = None
    raw: Any = field(default=None, compare=False, repr=False)

    @property
    def endpoints(self) -> Optional[tuple[str, str]]:
        """Canonical endpoints, or None unless both are valid and distinct."""
        if self.asset0 is None or self.asset1 is None or self.asset0 == self.asset1:
            return None
        return self.asset0, self.asset1

    @property
    def is_connected(self) -> bool:
        return self.endpoints is not None

    def other_asset(self, asset: str) -> Optional[str]:
        current = normalize_address(asset)
        if current is None or not self.is_connected:
            return None
        if current == self.asset0:
            return self.asset1
        if current == self.asset1:
            return self.asset0
        return None

    def pool_id_for(self, asset_in: str) -> Optional[int]:
        """Pool id on the side of the pair that holds ``asset_in``."""
        current = normalize_address(asset_in)
        if current is None:
            return None
        if current == self.asset0:
            return self.pool_id0
        if current == self.asset1:
            return self.pool_id1
        return None

    @classmethod
    def from_record(cls, vtp: Any) -> Optional["Pair"]:
        pair_id = normalize_id(_field(_field(vtp, "params"), "id"))
        if pair_id is None:
            return None
        token0 = _token_params(vtp, "token0")
        token1 = _token_params(vtp, "token1")
        return cls(
            id=pair_id,
            asset0=normalize_address(_field(token0, "asset")),
            asset1=normalize_address(_field(token1, "asset")),
            pool_id0=normalize_id(_field(token0, "id")),
            pool_id1=normalize_id(_field(token1, "id")),
            raw=vtp,
        )


@dataclass(frozen=True)
class TokenInfo:
    address: str
    symbol: str


@dataclass(frozen=True)
class TokenGraph:
    """Read-only result of a graph build."""

    adjacency: Mapping[str, tuple[Pair, ...]]
    pairs: Mapping[int, Pair]
    tokens: Mapping[str, TokenInfo]

    def neighbors(self, asset: str) -> tuple[Pair, ...]:
        key = normalize_address(asset)
        if key is None:
            return ()
        return self.adjacency.get(key, ())

    def has_token(self, asset: str) -> bool:
        key = normalize_address(asset)
        return key is not None and key in self.adjacency

    def pair_by_id(self, raw_id: Any) -> Optional[Pair]:
        pair_id = normalize_id(raw_id)
        if pair_id is None:
            return None
        return self.pairs.get(pair_id)

    def symbol(self, asset: str) -> str:
        key = normalize_address(asset)
        if key is not None and key in self.tokens:
            return self.tokens[key].symbol
        return truncate_address(asset)

    @property
    def token_count(self) -> int:
        return len(self.adjacency)


class GraphBuilder:
    """
    Builds a ``TokenGraph`` from pool records.

    - Pairs with an unresolvable id are skipped.
    - A pair id seen under several pools is kept once (first occurrence).
    - Pairs without two valid, distinct endpoints are kept in ``pairs`` but
      never become edges.
    """

    def __init__(self, symbols: Optional[Mapping[str, str]] = None):
        self._symbols: Mapping[str, str] = symbols or {}

    def build(self, pools: Optional[Iterable[Any]]) -> TokenGraph:
        pairs: dict[int, Pair] = {}
        adjacency: dict[str, list[Pair]] = {}
        seen_addresses: dict[str, str] = {}
        pool_count = 0
        skipped = 0

        for pool in pools or []:
            pool_count += 1
            vtps = _field(pool, "relatedVtps", "related_vtps")
            if not isinstance(vtps, (list, tuple)):
                continue
            for vtp in vtps:
                pair = Pair.from_record(vtp)
                if pair is None:
                    skipped += 1
                    continue
                if pair.id in pairs:
                    continue
                pairs[pair.id] = pair
                endpoints = pair.endpoints
                if endpoints is None:
                    logger.debug("VTP %d has malformed endpoints, not routable", pair.id)
                    continue
                originals = (
                    _field(_token_params(vtp, "token0"), "asset"),
                    _field(_token_params(vtp, "token1"), "asset"),
                )
                for canonical, original in zip(endpoints, originals):
                    seen_addresses.setdefault(canonical, original)
                    edges = adjacency.setdefault(canonical, [])
                    if pair not in edges:
                        edges.append(pair)

        tokens = {
            canonical: TokenInfo(address=original, symbol=self._lookup_symbol(original))
            for canonical, original in seen_addresses.items()
        }

        logger.info(
            "graph build complete: pools=%d vtps=%d tokens=%d skipped=%d",
            pool_count,
            len(pairs),
            len(tokens),
            skipped,
        )
        return TokenGraph(
            adjacency=MappingProxyType({k: tuple(v) for k, v in adjacency.items()}),
            pairs=MappingProxyType(pairs),
            tokens=MappingProxyType(tokens),
        )

    def _lookup_symbol(self, address: str) -> str:
        cached = self._symbols.get(address.lower()) or self._symbols.get(address)
        return cached or truncate_address(address)


def build_graph(
    pools: Optional[Iterable[Any]], symbols: Optional[Mapping[str, str]] = None
) -> TokenGraph:
    return GraphBuilder(symbols).build(pools)


__all__ = ["Pair", "TokenInfo", "TokenGraph", "GraphBuilder", "build_graph"]
