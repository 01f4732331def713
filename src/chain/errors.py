"""Chain-specific exceptions for RPC, ABI and multicall failures."""

from __future__ import annotations

from typing import Optional


class ChainError(Exception):
    """Base class for chain errors."""


class RPCError(ChainError):
    """RPC request failed."""

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        data: Optional[object] = None,
    ):
        self.code = code
        self.data = data
        super().__init__(message)


class ExecutionReverted(RPCError):
    """eth_call reverted on-chain."""


class AbiError(ChainError):
    """ABI descriptor is malformed or does not describe the requested function."""


class MulticallError(ChainError):
    """Aggregate call returned something that cannot be mapped back to the batch."""


class UnsupportedCallShape(MulticallError):
    """Batch elements are of an unknown type or mix several shapes."""
