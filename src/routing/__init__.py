from .graph import GraphBuilder, Pair, TokenGraph, TokenInfo, build_graph
from .paths import Path, enumerate_paths, path_ids
from .route import Route, RouteFinder

__all__ = [
    "GraphBuilder",
    "Pair",
    "TokenGraph",
    "TokenInfo",
    "build_graph",
    "Path",
    "enumerate_paths",
    "path_ids",
    "Route",
    "RouteFinder",
]
