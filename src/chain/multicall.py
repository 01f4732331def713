"""Batch many contract reads into one Multicall3 ``aggregate3`` call."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Union

from eth_abi.exceptions import DecodingError

from core.base_types import Address, CallRequest

from .abi import AbiDescriptor, Contract, ContractInterface
from .client import ChainClient
from .errors import AbiError, MulticallError, UnsupportedCallShape
from .scheduler import RequestScheduler

logger = logging.getLogger(__name__)

MULTICALL3_ADDRESS = "0xcA11bde05977b3631167028862bE2a173976CA11"

MULTICALL3_ABI = [
    {
        "type": "function",
        "name": "aggregate3",
        "stateMutability": "payable",
        "inputs": [
            {
                "name": "calls",
                "type": "tuple[]",
                "components": [
                    {"name": "target", "type": "address"},
                    {"name": "allowFailure", "type": "bool"},
                    {"name": "callData", "type": "bytes"},
                ],
            }
        ],
        "outputs": [
            {
                "name": "returnData",
                "type": "tuple[]",
                "components": [
                    {"name": "success", "type": "bool"},
                    {"name": "returnData", "type": "bytes"},
                ],
            }
        ],
    }
]


def _as_address(value: Union[str, Address]) -> Address:
    if isinstance(value, Address):
        return value
    return Address.from_string(value)


@dataclass(frozen=True)
class RawCall:
    """Target plus already-encoded call data."""

    target: Union[str, Address]
    call_data: bytes
    allow_failure: bool = False


@dataclass(frozen=True)
class HandleCall:
    """Method call on a resolved contract handle; encoded by the aggregator."""

    contract: Contract
    method: str
    args: Sequence[Any] = ()
    allow_failure: bool = False


@dataclass(frozen=True)
class DescriptorCall:
    """Target plus ABI descriptor; the aggregator builds a transient interface."""

    target: Union[str, Address]
    abi: AbiDescriptor
    method: str
    params: Sequence[Any] = ()
    allow_failure: bool = False


BatchCall = Union[RawCall, HandleCall, DescriptorCall]


@dataclass(frozen=True)
class CallResult:
    """One aggregate3 outcome."""

    success: bool
    return_data: bytes


@dataclass(frozen=True)
class _Prepared:
    target: Address
    allow_failure: bool
    call_data: bytes
    interface: Optional[ContractInterface]
    method: str
    arg_count: int


class MulticallAggregator:
    """
    Collapse a batch of reads into a single rate-limited aggregate3 call.

    The batch shape is taken from the first element; every element must share
    it. Failed sub-calls and sub-calls whose return data does not decode come
    back as ``None`` at their position. Raw batches return ``CallResult``
    pairs untouched.
    """

    def __init__(
        self,
        scheduler: RequestScheduler,
        client: ChainClient,
        address: Union[str, Address] = MULTICALL3_ADDRESS,
    ):
        self._scheduler = scheduler
        self._client = client
        self._contract = Contract.from_abi(address, MULTICALL3_ABI)

    @property
    def address(self) -> Address:
        return self._contract.address

    async def execute_batch(self, calls: Sequence[BatchCall]) -> list[Any]:
        calls = list(calls)
        if not calls:
            return []

        shape = _detect_shape(calls)
        prepared: list[Optional[_Prepared]] = []
        for idx, call in enumerate(calls):
            try:
                prepared.append(self._prepare(call))
            except (AbiError, TypeError, ValueError) as exc:
                logger.warning("Skipping batch call %d: %s", idx, exc)
                prepared.append(None)

        valid = [p for p in prepared if p is not None]
        results: list[CallResult] = []
        if valid:
            request = CallRequest(
                to=self._contract.address,
                data=self._contract.encode(
                    "aggregate3",
                    [[(p.target, p.allow_failure, p.call_data) for p in valid]],
                ),
            )
            raw = await self._scheduler.enqueue(
                lambda: asyncio.to_thread(self._client.call, request)
            )
            results = self._decode_aggregate(raw, expected=len(valid))

        outcomes = iter(results)
        output: list[Any] = []
        for p in prepared:
            if p is None:
                output.append(CallResult(False, b"") if shape is RawCall else None)
            elif shape is RawCall:
                output.append(next(outcomes))
            else:
                output.append(_decode_sub_result(p, next(outcomes)))
        return output

    def _prepare(self, call: BatchCall) -> _Prepared:
        if isinstance(call, RawCall):
            return _Prepared(
                target=_as_address(call.target),
                allow_failure=bool(call.allow_failure),
                call_data=bytes(call.call_data),
                interface=None,
                method="",
                arg_count=0,
            )
        if isinstance(call, HandleCall):
            args = list(call.args or [])
            return _Prepared(
                target=call.contract.address,
                allow_failure=bool(call.allow_failure),
                call_data=call.contract.encode(call.method, args),
                interface=call.contract.interface,
                method=call.method,
                arg_count=len(args),
            )
        # DescriptorCall; shape already validated
        params = list(call.params or [])
        interface = ContractInterface(call.abi)
        return _Prepared(
            target=_as_address(call.target),
            allow_failure=bool(call.allow_failure),
            call_data=interface.encode_function_data(call.method, params),
            interface=interface,
            method=call.method,
            arg_count=len(params),
        )

    def _decode_aggregate(self, raw: bytes, expected: int) -> list[CallResult]:
        try:
            decoded = self._contract.decode("aggregate3", raw)
        except (DecodingError, ValueError) as exc:
            raise MulticallError("Cannot decode aggregate3 response") from exc
        if len(decoded) != expected:
            raise MulticallError(
                f"aggregate3 returned {len(decoded)} results for {expected} calls"
            )
        return [CallResult(success=bool(ok), return_data=bytes(data)) for ok, data in decoded]

    def encode_call(self, contract: Contract, method: str, args: Sequence[Any] = ()) -> bytes:
        """Encode call data for building raw batches by hand."""
        return contract.encode(method, args)

    def decode_result(self, contract: Contract, method: str, data: bytes) -> Any:
        return contract.decode(method, data)


def _detect_shape(calls: Sequence[Any]) -> type:
    first = calls[0]
    shape = type(first)
    if shape not in (RawCall, HandleCall, DescriptorCall):
        raise UnsupportedCallShape(f"Unsupported batch call type {shape.__name__}")
    for idx, call in enumerate(calls[1:], start=1):
        if type(call) is not shape:
            raise UnsupportedCallShape(
                f"Mixed batch shapes: {shape.__name__} and "
                f"{type(call).__name__} at index {idx}"
            )
    return shape


def _decode_sub_result(prepared: _Prepared, result: CallResult) -> Any:
    if not result.success:
        return None
    if prepared.interface is None:
        return result
    try:
        return prepared.interface.decode_function_result(
            prepared.method, result.return_data, prepared.arg_count
        )
    except (DecodingError, AbiError, ValueError) as exc:
        logger.warning(
            "Failed to decode %s result from %s: %s",
            prepared.method,
            prepared.target.short,
            exc,
        )
        return None
