"""Depth-bounded enumeration of acyclic VTP paths between two assets."""

from __future__ import annotations

from typing import Iterator, Mapping, Sequence, Union

from core.ids import normalize_address

from .graph import Pair, TokenGraph

Path = tuple[Pair, ...]
Adjacency = Mapping[str, Sequence[Pair]]


def path_ids(path: Sequence[Pair]) -> tuple[int, ...]:
    return tuple(pair.id for pair in path)


def enumerate_paths(
    source: str,
    destination: str,
    adjacency: Union[TokenGraph, Adjacency],
    max_depth: int = 3,
    allow_same_asset: bool = False,
) -> list[Path]:
    """
    Return every path of distinct VTPs from ``source`` to ``destination``.

    Depth-first, following the adjacency insertion order at each asset, so
    the result order is deterministic for a given graph. A VTP is never used
    twice in the same path but may appear in several paths. Reaching the
    destination ends a branch. Paths longer than ``max_depth`` hops are
    pruned. Results are deduplicated by their VTP id sequence.
    """
    start = normalize_address(source)
    target = normalize_address(destination)
    if start is None or target is None:
        return []
    if start == target and not allow_same_asset:
        return []

    adj: Adjacency = adjacency.adjacency if isinstance(adjacency, TokenGraph) else adjacency

    found: list[Path] = []
    path: list[Pair] = []
    used: set[int] = set()
    # One frame per asset on the current walk; frame k > 0 was entered via path[k - 1].
    stack: list[tuple[str, Iterator[Pair]]] = [(start, iter(adj.get(start, ())))]

    while stack:
        asset, edges = stack[-1]
        pair = next(edges, None)
        if pair is None:
            stack.pop()
            if path:
                used.discard(path.pop().id)
            continue
        if pair.id in used:
            continue
        next_asset = pair.other_asset(asset)
        if next_asset is None:
            continue

        path.append(pair)
        if len(path) > max_depth:
            path.pop()
            continue
        if next_asset == target:
            found.append(tuple(path))
            path.pop()
            continue
        used.add(pair.id)
        stack.append((next_asset, iter(adj.get(next_asset, ()))))

    unique: list[Path] = []
    seen: set[tuple[int, ...]] = set()
    for candidate in found:
        key = path_ids(candidate)
        if key not in seen:
            seen.add(key)
            unique.append(candidate)
    return unique
